"""Account lifecycle: registration, login, email verification and password reset."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, settings
from ..errors import ApiError
from ..utils.text import normalize_email, sanitize_text
from .email import send_login_alert_email, send_password_reset_email, send_verification_email
from .passwords import generate_token, hash_password, hash_token, safe_compare_secrets, verify_password
from .site_content import get_master_key

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _check_new_password(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters.",
        )


def _issue_verification_token(user: models.User) -> str:
    token, token_hash = generate_token()
    now = _utcnow()
    user.verification_token_hash = token_hash
    user.verification_token_expires_at = now + timedelta(minutes=settings.TOKEN_TTL_MINUTES)
    user.verification_token_sent_at = now
    return token


def find_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == normalize_email(email)).first()


def register(db: Session, name: str | None, email: str | None, password: str | None) -> models.User:
    """
    Create an unverified account and email its verification link.

    Raises:
        ApiError: 400 on missing fields, short password or duplicate email
    """
    name = sanitize_text(name)
    email = normalize_email(email)
    password = (password or "").strip()

    if not name or not email or not password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "All fields are required")
    _check_new_password(password)

    if find_user_by_email(db, email) is not None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email already exists")

    user = models.User(
        name=name[:100],
        email=email,
        password_hash=hash_password(password),
        is_verified=False,
    )
    token = _issue_verification_token(user)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email already exists")
    db.refresh(user)

    send_verification_email(user.email, token, user.name)
    logger.info(f"New account: {user.name} ({user.email})")
    return user


@dataclass
class LoginResult:
    user: models.User
    role: str


def login(
    db: Session,
    email: str | None,
    password: str | None,
    login_type: str = "user",
    master_key: str | None = None,
    ip: str = "unknown",
    user_agent: str | None = None,
) -> LoginResult:
    """
    Check credentials, record the login and send the sign-in alert.

    Admin logins additionally need the master key. Every admin failure
    reports the same generic message.

    Raises:
        ApiError: 400/403/500 as described by the individual checks
    """
    email = normalize_email(email)
    password = (password or "").strip()
    master_key = (master_key or "").strip()
    is_admin_login = login_type == "admin"

    logger.info(f"Login mode: {login_type}, email: {email}")

    user = find_user_by_email(db, email) if email else None
    if user is None:
        message = INVALID_CREDENTIALS if is_admin_login else "User not found. Please Sign Up."
        raise ApiError(status.HTTP_400_BAD_REQUEST, message)

    if not user.is_verified:
        raise ApiError(
            status.HTTP_403_FORBIDDEN,
            "Email not verified. Please verify first.",
            canResend=True,
        )

    if not user.password_hash:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Account outdated. Please Register again.")

    if is_admin_login:
        if not user.is_admin:
            raise ApiError(status.HTTP_403_FORBIDDEN, INVALID_CREDENTIALS)
        expected_key = get_master_key(db)
        if not expected_key:
            logger.error("Admin login attempted but no master key is configured")
            raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Admin login is unavailable.")
        if not safe_compare_secrets(master_key, expected_key):
            logger.warning(f"Admin login rejected for {email}: bad master key")
            raise ApiError(status.HTTP_403_FORBIDDEN, INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        message = INVALID_CREDENTIALS if is_admin_login else "Invalid Password"
        raise ApiError(status.HTTP_400_BAD_REQUEST, message)

    agent = (user_agent or "")[: settings.MAX_USER_AGENT_LENGTH]
    user.last_login_at = _utcnow()
    user.last_login_ip = ip[:45]
    user.last_login_user_agent = agent
    db.commit()
    db.refresh(user)

    send_login_alert_email(user.email, user.name, ip, agent)
    return LoginResult(user=user, role="admin" if user.is_admin else "user")


def verify_email(db: Session, token: str | None) -> models.User:
    if not token:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Missing token")

    user = (
        db.query(models.User)
        .filter(
            models.User.verification_token_hash == hash_token(str(token)),
            models.User.verification_token_expires_at > _utcnow(),
        )
        .first()
    )
    if user is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid or expired token")

    user.is_verified = True
    user.verification_token_hash = None
    user.verification_token_expires_at = None
    user.verification_token_sent_at = None
    db.commit()
    db.refresh(user)
    logger.info(f"Email verified for {user.email}")
    return user


def resend_verification(db: Session, email: str | None) -> str:
    """Send a fresh verification link. Returns the message for the client."""
    email = normalize_email(email)
    if not email:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email is required")

    user = find_user_by_email(db, email)
    if user is None or user.is_verified:
        return "If the account exists, a verification email has been sent."

    sent_at = user.verification_token_sent_at
    if sent_at is not None:
        elapsed = (_utcnow() - _naive_utc(sent_at)).total_seconds()
        if elapsed < settings.VERIFICATION_RESEND_COOLDOWN_SECONDS:
            raise ApiError(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "Please wait before requesting another email.",
            )

    token = _issue_verification_token(user)
    db.commit()
    send_verification_email(user.email, token, user.name)
    return "Verification email sent."


def forgot_password(db: Session, email: str | None) -> None:
    """Issue a reset token when the account exists. Callers always report success."""
    email = normalize_email(email)
    if not email:
        return

    user = find_user_by_email(db, email)
    if user is None:
        return

    token, token_hash = generate_token()
    user.reset_token_hash = token_hash
    user.reset_token_expires_at = _utcnow() + timedelta(minutes=settings.TOKEN_TTL_MINUTES)
    db.commit()
    send_password_reset_email(user.email, token, user.name)


def reset_password(db: Session, token: str | None, password: str | None) -> models.User:
    password = (password or "").strip()
    if not token or not password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Token and new password are required.")
    _check_new_password(password)

    user = (
        db.query(models.User)
        .filter(
            models.User.reset_token_hash == hash_token(str(token)),
            models.User.reset_token_expires_at > _utcnow(),
        )
        .first()
    )
    if user is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid or expired token.")

    user.password_hash = hash_password(password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.commit()
    db.refresh(user)
    logger.info(f"Password reset for {user.email}")
    return user


def update_profile(
    db: Session,
    user: models.User,
    name: str | None = None,
    bio: str | None = None,
    avatar_url: str | None = None,
    password: str | None = None,
) -> models.User:
    """
    Apply the provided profile fields. ``bio`` may be set to '' to clear it.

    Raises:
        ApiError: 400 when nothing was provided
    """
    updated = False
    clean_name = sanitize_text(name)
    if clean_name:
        user.name = clean_name[:100]
        updated = True
    if bio is not None:
        user.bio = sanitize_text(bio)[: settings.MAX_BIO_LENGTH]
        updated = True
    clean_avatar = sanitize_text(avatar_url)
    if clean_avatar:
        user.avatar_url = clean_avatar[:500]
        updated = True
    if password:
        _check_new_password(password)
        user.password_hash = hash_password(password)
        updated = True

    if not updated:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No updates provided")

    db.commit()
    db.refresh(user)
    return user


# Admin edits, keyed by wire name. Identifiers and token state are never writable.
ADMIN_EDITABLE_FIELDS = {
    "name": "name",
    "email": "email",
    "bio": "bio",
    "avatarUrl": "avatar_url",
    "isAdmin": "is_admin",
    "isVerified": "is_verified",
}


def _parse_flag(value: object) -> bool | None:
    """Booleans, or the strings "true"/"false". Anything else is ignored."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def admin_update_user(db: Session, user_id: int | None, updates: dict | None) -> tuple[models.User, list[str]]:
    """
    Apply an admin's edits to any account. A ``password`` entry is hashed first.

    Returns:
        Tuple of (user, applied field names)

    Raises:
        ApiError: 400 when the request is incomplete or nothing applies, 404 for an unknown user
    """
    if not user_id or not updates:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Missing userId or updates")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")

    applied: list[str] = []
    for key, value in updates.items():
        if key == "password":
            if value:
                _check_new_password(str(value))
                user.password_hash = hash_password(str(value))
                applied.append(key)
            continue
        attr = ADMIN_EDITABLE_FIELDS.get(key)
        if attr is None:
            continue
        if attr in ("is_admin", "is_verified"):
            value = _parse_flag(value)
            if value is None:
                continue
        elif attr == "email":
            value = normalize_email(value)
            if not value:
                continue
        elif attr == "bio":
            value = sanitize_text(value)[: settings.MAX_BIO_LENGTH]
        else:
            value = sanitize_text(value)
        setattr(user, attr, value)
        applied.append(key)

    if not applied:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No updates provided")

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email already exists")
    db.refresh(user)
    logger.info(f"Admin updated user {user.id}: {applied}")
    return user, applied
