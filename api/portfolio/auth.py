from __future__ import annotations

import hashlib
import hmac
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit

import jwt
from fastapi import Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import models, settings
from .deps import get_db
from .errors import ApiError
from .services.passwords import safe_compare_secrets

logger = logging.getLogger(__name__)

# Optional Bearer scheme for the static admin token
bearer_scheme = HTTPBearer(auto_error=False)

# Session signing configuration
SESSION_SECRET = os.getenv("SESSION_SECRET")
if not SESSION_SECRET:
    raise RuntimeError(
        "SESSION_SECRET environment variable is required but not set. "
        "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
if len(SESSION_SECRET) < 32:
    raise RuntimeError(
        "SESSION_SECRET is too short. Must be at least 32 characters long. "
        "Note: This checks length, not entropy. Use cryptographically random values."
    )
SESSION_ALGORITHM = "HS256"


@dataclass
class SessionClaims:
    """Identity carried by the signed session cookie."""

    user_id: int
    name: str
    email: str
    is_admin: bool


@dataclass
class AdminActor:
    """Who is driving an admin-only content operation. ``user_id`` is None for the static token."""

    user_id: int | None
    via_token: bool = False


def create_session_token(user: models.User, expires_in_seconds: int | None = None) -> str:
    """Create the signed JWT stored in the session cookie."""
    if expires_in_seconds is None:
        expires_in_seconds = settings.SESSION_MAX_AGE_SECONDS

    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user.id,
        "name": user.name,
        "email": user.email,
        "is_admin": bool(user.is_admin),
        "iat": now,
        "exp": now + timedelta(seconds=expires_in_seconds),
    }
    return jwt.encode(payload, SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str | None) -> SessionClaims | None:
    """Verify a session token. Returns None when missing, tampered with or expired."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    try:
        return SessionClaims(
            user_id=int(payload["user_id"]),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            is_admin=bool(payload.get("is_admin")),
        )
    except (KeyError, TypeError, ValueError):
        return None


def set_session_cookie(response: Response, user: models.User) -> None:
    # Cross-site deployments need SameSite=None, which browsers only accept with Secure.
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(user),
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.IS_PRODUCTION,
        samesite="none" if settings.IS_PRODUCTION else "lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.IS_PRODUCTION,
        samesite="none" if settings.IS_PRODUCTION else "lax",
    )


def get_session_claims(request: Request) -> SessionClaims | None:
    """Claims from the session cookie, without touching the database."""
    return decode_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME))


def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db),
) -> models.User | None:
    claims = get_session_claims(request)
    if claims is None:
        return None
    return db.query(models.User).filter(models.User.id == claims.user_id).first()


def get_current_user(
    user: models.User | None = Depends(get_current_user_optional),
) -> models.User:
    if user is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Not authenticated")
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not user.is_admin:
        raise ApiError(status.HTTP_403_FORBIDDEN, "Admin only")
    return user


def is_admin_token(token: str | None) -> bool:
    return safe_compare_secrets(token, settings.ADMIN_TOKEN)


def require_site_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    user: models.User | None = Depends(get_current_user_optional),
) -> AdminActor:
    """
    Gate for the draft/publish endpoints.

    Accepts either an admin session cookie or ``Authorization: Bearer <ADMIN_TOKEN>``.
    """
    if user is not None and user.is_admin:
        return AdminActor(user_id=user.id)
    if credentials is not None and is_admin_token(credentials.credentials):
        return AdminActor(user_id=None, via_token=True)
    if user is None and credentials is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Not authenticated")
    raise ApiError(status.HTTP_403_FORBIDDEN, "Admin only")


def csrf_token(request: Request) -> str:
    """Per-session token for the server-rendered forms, bound to the session cookie."""
    session_cookie = request.cookies.get(settings.SESSION_COOKIE_NAME) or ""
    return hmac.new(
        SESSION_SECRET.encode("utf-8"), f"csrf:{session_cookie}".encode("utf-8"), hashlib.sha256
    ).hexdigest()


def is_same_origin(request: Request) -> bool:
    """
    True unless the browser says the request came from another site.

    Uses ``Origin``, falling back to ``Referer``. Requests carrying neither
    (non-browser clients) pass; an opaque ``null`` origin does not.
    """
    source = request.headers.get("origin") or request.headers.get("referer")
    if not source:
        return True
    return urlsplit(source).netloc.lower() == request.url.netloc.lower()


def verify_form_request(
    request: Request,
    submitted_token: str | None = None,
    require_token: bool = True,
) -> None:
    """
    Reject cross-site form posts.

    Raises:
        ApiError: 403 when the origin is foreign or the CSRF token does not match
    """
    if not is_same_origin(request):
        logger.warning(f"Rejected cross-origin form post to {request.url.path} from {get_client_ip(request)}")
        raise ApiError(status.HTTP_403_FORBIDDEN, "CSRF token validation failed")
    if require_token and not safe_compare_secrets(submitted_token, csrf_token(request)):
        logger.warning(f"Rejected form post to {request.url.path} with a bad CSRF token")
        raise ApiError(status.HTTP_403_FORBIDDEN, "CSRF token validation failed")


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request, handling proxies.

    Checks X-Forwarded-For header first (for reverse proxy setups),
    then falls back to direct client IP.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs; take the first one
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
