from __future__ import annotations

import logging

from . import models, settings
from .db import SessionLocal
from .services import site_content
from .services.passwords import hash_password
from .utils.text import normalize_email

logger = logging.getLogger(__name__)


def _ensure_admin_account(db) -> None:
    """
    Create the configured admin account, or repair it.

    An existing account with this email is promoted to admin and verified;
    its password is only replaced when it has none.
    """
    email = normalize_email(settings.ADMIN_EMAIL)
    if not email or not settings.ADMIN_PASSWORD:
        logger.info("ensure_seed_data: ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account.")
        return

    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None:
        user = models.User(
            email=email,
            name=settings.ADMIN_NAME,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            is_admin=True,
            is_verified=True,
        )
        db.add(user)
        db.commit()
        logger.info(f"ensure_seed_data: Created admin account {email}")
        return

    changed = []
    if not user.password_hash:
        user.password_hash = hash_password(settings.ADMIN_PASSWORD)
        changed.append("password")
    if not user.is_admin:
        user.is_admin = True
        changed.append("is_admin")
    if not user.is_verified:
        user.is_verified = True
        changed.append("is_verified")
    if changed:
        db.commit()
        logger.info(f"ensure_seed_data: Repaired admin account {email}: {changed}")


def ensure_seed_data() -> None:
    """Seed the content document, the first draft and the admin account."""
    db = SessionLocal()
    try:
        site_content.ensure_content_seed(db)
        site_content.get_or_create_draft(db)
        _ensure_admin_account(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()
