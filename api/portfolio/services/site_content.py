"""Content store: the single mutable document plus versioned draft/published snapshots."""

from __future__ import annotations

import copy
import logging
from typing import Any

from fastapi import status
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, settings
from ..content import CONTENT_KEY, SEED_CONTENT, apply_patch, normalize_content
from ..errors import ApiError
from ..utils.audit import log_admin_action

logger = logging.getLogger(__name__)

DRAFT = "draft"
PUBLISHED = "published"


# ============================================================================
# SINGLE DOCUMENT
# ============================================================================


def get_content_row(db: Session) -> models.SiteContent | None:
    return db.query(models.SiteContent).filter(models.SiteContent.key == CONTENT_KEY).first()


def get_content(db: Session) -> dict[str, Any] | None:
    row = get_content_row(db)
    return copy.deepcopy(row.value) if row is not None else None


def ensure_content_seed(db: Session) -> models.SiteContent:
    row = get_content_row(db)
    if row is None:
        row = models.SiteContent(key=CONTENT_KEY, value=copy.deepcopy(SEED_CONTENT))
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("Content document initialized.")
    return row


def read_content(db: Session, count_view: bool) -> dict[str, Any]:
    """
    Return the content document, bumping ``analytics.totalViews`` for visitor reads.

    Raises:
        ApiError: 404 when no document exists
    """
    row = get_content_row(db)
    if row is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Content not found")

    value = copy.deepcopy(row.value or {})
    if count_view:
        analytics = value.get("analytics") if isinstance(value.get("analytics"), dict) else {}
        analytics["totalViews"] = int(analytics.get("totalViews") or 0) + 1
        value["analytics"] = analytics
        # JSON columns only track reassignment
        row.value = value
        db.commit()
    return copy.deepcopy(value)


def replace_content(db: Session, value: dict[str, Any], actor_id: int | None) -> dict[str, Any]:
    """Overwrite the whole document."""
    row = get_content_row(db)
    if row is None:
        row = models.SiteContent(key=CONTENT_KEY, value={})
        db.add(row)
    row.value = copy.deepcopy(value)
    log_admin_action(db, actor_id, "replace_content", "site_content", CONTENT_KEY, commit=False)
    db.commit()
    return copy.deepcopy(row.value)


def patch_content(db: Session, patch: dict[str, Any], actor_id: int | None) -> tuple[dict[str, Any], list[str]]:
    """Shallow-merge top-level keys into the document. Returns (document, changed keys)."""
    row = get_content_row(db)
    if row is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Content not found")

    patched, changed = apply_patch(row.value or {}, patch)
    if changed:
        row.value = patched
        log_admin_action(
            db, actor_id, "patch_content", "site_content", CONTENT_KEY,
            note=", ".join(changed), commit=False,
        )
        db.commit()
    return copy.deepcopy(patched), changed


def get_master_key(db: Session) -> str | None:
    """Admin master key: ADMIN_MASTER_KEY, else the document's ``sitePassword``."""
    if settings.ADMIN_MASTER_KEY:
        return settings.ADMIN_MASTER_KEY
    content = get_content(db) or {}
    site_password = content.get("sitePassword")
    return site_password.strip() if isinstance(site_password, str) and site_password.strip() else None


# ============================================================================
# VERSIONS
# ============================================================================


def get_active(db: Session, version_status: str) -> models.SiteVersion | None:
    return (
        db.query(models.SiteVersion)
        .filter(models.SiteVersion.status == version_status, models.SiteVersion.is_active.is_(True))
        .first()
    )


def _next_version(db: Session) -> int:
    current = db.query(func.max(models.SiteVersion.version)).scalar()
    return (current or 0) + 1


def get_or_create_draft(db: Session, actor_id: int | None = None) -> models.SiteVersion:
    """The active draft, created from the live content when none exists."""
    draft = get_active(db, DRAFT)
    if draft is not None:
        return draft

    published = get_active(db, PUBLISHED)
    if published is not None:
        data = copy.deepcopy(published.data)
    else:
        data = normalize_content(get_content(db))

    draft = models.SiteVersion(
        version=_next_version(db),
        status=DRAFT,
        is_active=True,
        data=data,
        created_by=actor_id,
    )
    db.add(draft)
    db.commit()
    db.refresh(draft)
    logger.info(f"Created draft version {draft.version}")
    return draft


def save_draft(db: Session, data: dict[str, Any], actor_id: int | None) -> models.SiteVersion:
    """Replace the draft with a normalized copy of ``data``."""
    draft = get_or_create_draft(db, actor_id)
    draft.data = normalize_content(data)
    log_admin_action(db, actor_id, "save_draft", "site_version", draft.version, commit=False)
    db.commit()
    db.refresh(draft)
    return draft


def patch_draft(
    db: Session, patch: dict[str, Any], actor_id: int | None
) -> tuple[models.SiteVersion, list[str]]:
    """Shallow-merge changed top-level keys into the draft. Returns (draft, changed keys)."""
    draft = get_or_create_draft(db, actor_id)
    patched, changed = apply_patch(draft.data or {}, patch)
    if changed:
        draft.data = patched
        log_admin_action(
            db, actor_id, "patch_draft", "site_version", draft.version,
            note=", ".join(changed), commit=False,
        )
        db.commit()
        db.refresh(draft)
    return draft, changed


def _publish_data(db: Session, data: dict[str, Any], actor_id: int | None) -> models.SiteVersion:
    previous = get_active(db, PUBLISHED)
    if previous is not None:
        previous.is_active = False
        # The active-per-status unique index must see the old row released first
        db.flush()

    published = models.SiteVersion(
        version=_next_version(db),
        status=PUBLISHED,
        is_active=True,
        data=copy.deepcopy(data),
        created_by=actor_id,
    )
    db.add(published)
    db.flush()
    _prune_history(db)
    return published


def _prune_history(db: Session) -> int:
    """Delete inactive published rows beyond the newest SITE_HISTORY_LIMIT."""
    stale = (
        db.query(models.SiteVersion)
        .filter(models.SiteVersion.status == PUBLISHED)
        .order_by(models.SiteVersion.version.desc())
        .offset(settings.SITE_HISTORY_LIMIT)
        .all()
    )
    pruned = 0
    for row in stale:
        if not row.is_active:
            db.delete(row)
            pruned += 1
    if pruned:
        logger.info(f"Pruned {pruned} old published versions")
    return pruned


def publish(db: Session, actor_id: int | None) -> models.SiteVersion:
    """Copy the draft into a new active published version."""
    draft = get_or_create_draft(db, actor_id)
    published = _publish_data(db, draft.data or {}, actor_id)
    log_admin_action(db, actor_id, "publish_site", "site_version", published.version, commit=False)
    db.commit()
    db.refresh(published)
    logger.info(f"Published site version {published.version}")
    return published


def list_history(db: Session) -> list[models.SiteVersion]:
    return (
        db.query(models.SiteVersion)
        .filter(models.SiteVersion.status == PUBLISHED)
        .order_by(models.SiteVersion.version.desc())
        .all()
    )


def rollback(db: Session, version: int, actor_id: int | None) -> models.SiteVersion:
    """
    Re-publish a past version's data as a new version and reset the draft to it.

    Raises:
        ApiError: 404 when the version is not in the published history
    """
    target = (
        db.query(models.SiteVersion)
        .filter(models.SiteVersion.status == PUBLISHED, models.SiteVersion.version == version)
        .first()
    )
    if target is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Version not found")

    data = copy.deepcopy(target.data or {})
    draft = get_or_create_draft(db, actor_id)
    draft.data = copy.deepcopy(data)

    published = _publish_data(db, data, actor_id)
    log_admin_action(
        db, actor_id, "rollback_site", "site_version", published.version,
        note=f"restored version {version}", commit=False,
    )
    db.commit()
    db.refresh(published)
    logger.info(f"Rolled back to version {version} as version {published.version}")
    return published


def get_published_content(db: Session) -> dict[str, Any]:
    """Normalized content visitors should see: active published version, else the document."""
    published = get_active(db, PUBLISHED)
    if published is not None:
        return normalize_content(published.data)
    return normalize_content(get_content(db))
