"""Audit logging utility for admin actions."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)


def log_admin_action(
    db: Session,
    actor_id: int | None,
    action: str,
    target_type: str | None = None,
    target_id: str | int | None = None,
    note: str | None = None,
    commit: bool = True,
) -> models.AuditLog:
    """
    Log an admin action to the audit log.

    Args:
        db: Database session
        actor_id: ID of the admin performing the action (None for the static admin token)
        action: Action name (e.g., "publish_site", "update_user", "console_clear")
        target_type: Type of target (e.g., "user", "site_version", "blog_post")
        target_id: ID of the target entity
        note: Additional context
        commit: Commit immediately; pass False to ride along with the caller's transaction

    Returns:
        The created AuditLog entry
    """
    audit_entry = models.AuditLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        note=note,
    )
    db.add(audit_entry)
    if commit:
        db.commit()
        db.refresh(audit_entry)
    logger.info(f"Admin action {action} by {actor_id or 'token'} on {target_type}:{target_id}")
    return audit_entry
