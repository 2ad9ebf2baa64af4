from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import engine
from .errors import register_exception_handlers
from .logbuffer import install_log_buffer
from .middleware import SecurityHeadersMiddleware
from .routers import admin, auth, blog, content, pages, site, system, users
from .seed import ensure_seed_data

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
install_log_buffer()
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    return cfg


def run_migrations() -> None:
    logger.info("run_migrations: Starting...")
    try:
        alembic_cfg = _alembic_config()
        try:
            with engine.connect() as connection:
                current_heads = set(MigrationContext.configure(connection).get_current_heads())
                heads = set(ScriptDirectory.from_config(alembic_cfg).get_heads())
                if current_heads and current_heads == heads:
                    logger.info(f"Database is up to date (revision: {sorted(heads)}), skipping migrations.")
                    return
                logger.info(f"Current revision(s): {sorted(current_heads)}, target: {sorted(heads)}")
        finally:
            # Ensure connection is closed before calling command.upgrade
            engine.dispose()

        command.upgrade(alembic_cfg, "head")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    try:
        run_migrations()
        ensure_seed_data()
        _STARTUP_COMPLETE = True
        logger.info("Startup tasks completed.")
    except Exception as e:
        logger.error(f"Startup tasks failed: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    # Server won't start until migrations and seeding complete
    run_startup_tasks()
    logger.info("Portfolio server ready")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="Portfolio API",
    version="1.0.0",
    description="Personal portfolio site with accounts, blog and a versioned content editor",
    lifespan=lifespan,
)

# In production, set CORS_ORIGINS to a comma-separated list of allowed origins
cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8000")
if cors_origins_str == "*":
    logger.warning(
        "CORS is configured to allow all origins. "
        "Credentials are sent cross-origin; set CORS_ORIGINS to specific domains."
    )
cors_origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)
app.add_middleware(SecurityHeadersMiddleware)

register_exception_handlers(app)

app.include_router(system.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(blog.router)
app.include_router(content.router)
app.include_router(site.router)
app.include_router(admin.router)
app.include_router(pages.router)
