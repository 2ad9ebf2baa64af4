from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine

from portfolio import models  # noqa: F401  (registers tables on Base.metadata)
from portfolio.db import Base, DATABASE_URL

config = context.config

# Logging is configured by the application; fileConfig() here would drop the
# in-memory log buffer handler installed at startup.

target_metadata = Base.metadata


def get_migration_url() -> str:
    """Explicit sqlalchemy.url from the ini wins, otherwise the app's database URL."""
    return config.get_main_option("sqlalchemy.url") or DATABASE_URL


def run_migrations_offline() -> None:
    url = get_migration_url()

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_migration_url()
    connectable = create_engine(url, pool_pre_ping=True)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
