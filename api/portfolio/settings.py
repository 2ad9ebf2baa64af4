"""Centralized environment-driven settings.

Keep this module lightweight: no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION: bool = ENVIRONMENT == "production"

# Public origin used in links inside outgoing emails.
APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:8000").rstrip("/")

# Shared secret required (on top of the password) for admin logins.
# When unset, the content document's `sitePassword` is used instead.
ADMIN_MASTER_KEY: str | None = os.getenv("ADMIN_MASTER_KEY") or None

# Static bearer token accepted by the draft/publish endpoints and draft preview.
ADMIN_TOKEN: str | None = os.getenv("ADMIN_TOKEN") or None

ADMIN_EMAIL: str | None = os.getenv("ADMIN_EMAIL") or None
ADMIN_PASSWORD: str | None = os.getenv("ADMIN_PASSWORD") or None
ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Site Admin")

SESSION_COOKIE_NAME = "session"
SESSION_MAX_AGE_SECONDS: int = _int_env("SESSION_MAX_AGE_SECONDS", 24 * 60 * 60)

# Verification and reset tokens.
TOKEN_TTL_MINUTES: int = _int_env("TOKEN_TTL_MINUTES", 30)
VERIFICATION_RESEND_COOLDOWN_SECONDS: int = _int_env("VERIFICATION_RESEND_COOLDOWN_SECONDS", 60)
MIN_PASSWORD_LENGTH = 8

# Auth endpoints: N requests per window per client IP.
AUTH_RATE_LIMIT: int = _int_env("AUTH_RATE_LIMIT", 10)
AUTH_RATE_WINDOW_SECONDS: int = _int_env("AUTH_RATE_WINDOW_SECONDS", 600)

LOG_BUFFER_SIZE: int = _int_env("LOG_BUFFER_SIZE", 200)

# Published versions kept for rollback.
SITE_HISTORY_LIMIT: int = _int_env("SITE_HISTORY_LIMIT", 10)

MAX_BIO_LENGTH = 500
MAX_USER_AGENT_LENGTH = 250
