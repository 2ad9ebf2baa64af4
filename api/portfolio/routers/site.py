"""Versioned content: draft editing, publishing and rollback."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import AdminActor, require_site_admin
from ..content import public_view
from ..deps import get_db
from ..errors import ApiError
from ..services import site_content

router = APIRouter(prefix="/api/site", tags=["Site"])


def _draft_response(draft, changed: list[str] | None = None) -> schemas.DraftResponse:
    return schemas.DraftResponse(
        version=draft.version,
        data=draft.data,
        updated_at=draft.updated_at,
        changed=changed,
    )


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid content payload")
    return payload


@router.get("/draft", response_model=schemas.DraftResponse)
def get_draft(
    actor: AdminActor = Depends(require_site_admin),
    db: Session = Depends(get_db),
) -> schemas.DraftResponse:
    return _draft_response(site_content.get_or_create_draft(db, actor.user_id))


@router.put("/draft", response_model=schemas.DraftResponse)
def save_draft(
    payload: Any = Body(None),
    actor: AdminActor = Depends(require_site_admin),
    db: Session = Depends(get_db),
) -> schemas.DraftResponse:
    """Replace the draft document."""
    draft = site_content.save_draft(db, _require_object(payload), actor.user_id)
    return _draft_response(draft)


@router.patch("/draft", response_model=schemas.DraftResponse)
def patch_draft(
    payload: Any = Body(None),
    actor: AdminActor = Depends(require_site_admin),
    db: Session = Depends(get_db),
) -> schemas.DraftResponse:
    """Merge changed top-level keys into the draft."""
    draft, changed = site_content.patch_draft(db, _require_object(payload), actor.user_id)
    return _draft_response(draft, changed)


@router.post("/publish", response_model=schemas.PublishResponse)
def publish(
    actor: AdminActor = Depends(require_site_admin),
    db: Session = Depends(get_db),
) -> schemas.PublishResponse:
    published = site_content.publish(db, actor.user_id)
    return schemas.PublishResponse(version=published.version)


@router.get("/history", response_model=schemas.HistoryResponse)
def get_history(
    _actor: AdminActor = Depends(require_site_admin),
    db: Session = Depends(get_db),
) -> schemas.HistoryResponse:
    rows = site_content.list_history(db)
    return schemas.HistoryResponse(history=[schemas.HistoryItem.model_validate(row) for row in rows])


@router.post("/rollback/{version}", response_model=schemas.PublishResponse)
def rollback(
    version: int,
    actor: AdminActor = Depends(require_site_admin),
    db: Session = Depends(get_db),
) -> schemas.PublishResponse:
    """Re-publish an earlier version; the draft is reset to the same data."""
    published = site_content.rollback(db, version, actor.user_id)
    return schemas.PublishResponse(version=published.version)


@router.get("/published")
def get_published(db: Session = Depends(get_db)) -> dict[str, Any]:
    """Normalized live content for visitors."""
    return public_view(site_content.get_published_content(db))
