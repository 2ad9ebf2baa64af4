"""Public profiles and the follow graph."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db
from ..errors import ApiError
from ..pagination import page_params
from ..services import accounts, follows

router = APIRouter(prefix="/api", tags=["Users"])

FOLLOW_PAGE_DEFAULT = 20
FOLLOW_PAGE_MAX = 50


@router.get("/users/{user_id}", response_model=schemas.UserPublicResponse)
def get_user(user_id: int, db: Session = Depends(get_db)) -> schemas.UserPublicResponse:
    user = follows.get_user_or_404(db, user_id)
    return schemas.UserPublicResponse(user=schemas.UserPublic.model_validate(user))


@router.patch("/users/{user_id}", response_model=schemas.UserPublicResponse)
def update_user(
    user_id: int,
    payload: schemas.UserProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.UserPublicResponse:
    """Edit a profile. Only the owner or an admin may do this."""
    if current_user.id != user_id and not current_user.is_admin:
        raise ApiError(status.HTTP_403_FORBIDDEN, "Forbidden")

    target = follows.get_user_or_404(db, user_id)
    accounts.update_profile(
        db,
        target,
        name=payload.name,
        bio=payload.bio,
        avatar_url=payload.avatar_url,
    )
    return schemas.UserPublicResponse(user=schemas.UserPublic.model_validate(target))


@router.post("/follow/{user_id}", response_model=schemas.MessageResponse)
def follow_user(
    user_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    follows.follow(db, current_user, user_id)
    return schemas.MessageResponse()


@router.delete("/follow/{user_id}", response_model=schemas.MessageResponse)
def unfollow_user(
    user_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    follows.unfollow(db, current_user, user_id)
    return schemas.MessageResponse()


@router.get("/users/{user_id}/followers", response_model=schemas.Page[schemas.UserPublic])
def list_followers(
    user_id: int,
    page: int | None = Query(None),
    limit: int | None = Query(None),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.UserPublic]:
    params = page_params(page, limit, FOLLOW_PAGE_DEFAULT, FOLLOW_PAGE_MAX)
    users, total = follows.list_followers(db, user_id, params)
    return schemas.Page[schemas.UserPublic](
        total=total,
        page=params.page,
        limit=params.limit,
        items=[schemas.UserPublic.model_validate(user) for user in users],
    )


@router.get("/users/{user_id}/following", response_model=schemas.Page[schemas.UserPublic])
def list_following(
    user_id: int,
    page: int | None = Query(None),
    limit: int | None = Query(None),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.UserPublic]:
    params = page_params(page, limit, FOLLOW_PAGE_DEFAULT, FOLLOW_PAGE_MAX)
    users, total = follows.list_following(db, user_id, params)
    return schemas.Page[schemas.UserPublic](
        total=total,
        page=params.page,
        limit=params.limit,
        items=[schemas.UserPublic.model_validate(user) for user in users],
    )


@router.get("/users/{user_id}/is-following", response_model=schemas.IsFollowingResponse)
def get_is_following(
    user_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.IsFollowingResponse:
    return schemas.IsFollowingResponse(is_following=follows.is_following(db, current_user.id, user_id))
