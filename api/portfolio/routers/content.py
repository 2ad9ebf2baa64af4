"""The single site content document."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user_optional, require_admin
from ..content import public_view
from ..deps import get_db
from ..errors import ApiError
from ..services import site_content

router = APIRouter(prefix="/api", tags=["Content"])


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid content payload")
    return payload


@router.get("/content")
def get_content(
    user: models.User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Return the content document.

    Visitor reads count towards ``analytics.totalViews`` and never see secrets.
    Admin reads are not counted.
    """
    is_admin = user is not None and user.is_admin
    content = site_content.read_content(db, count_view=not is_admin)
    return content if is_admin else public_view(content)


@router.post("/content", response_model=schemas.MessageResponse)
def replace_content(
    payload: Any = Body(None),
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    """Overwrite the whole document."""
    site_content.replace_content(db, _require_object(payload), admin.id)
    return schemas.MessageResponse(message="Content updated")


@router.patch("/content", response_model=schemas.ContentPatchResponse)
def patch_content(
    payload: Any = Body(None),
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.ContentPatchResponse:
    """Merge top-level keys into the document and report which ones changed."""
    content, changed = site_content.patch_content(db, _require_object(payload), admin.id)
    return schemas.ContentPatchResponse(changed=changed, content=content)
