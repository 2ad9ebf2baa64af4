"""Follow graph with denormalized follower/following counters."""

from __future__ import annotations

import logging

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..errors import ApiError
from ..pagination import PageParams, paginate

logger = logging.getLogger(__name__)


def _bump_counts(db: Session, follower_id: int, following_id: int, delta: int) -> None:
    db.query(models.User).filter(models.User.id == follower_id).update(
        {models.User.following_count: models.User.following_count + delta},
        synchronize_session=False,
    )
    db.query(models.User).filter(models.User.id == following_id).update(
        {models.User.followers_count: models.User.followers_count + delta},
        synchronize_session=False,
    )


def get_user_or_404(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    return user


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return (
        db.query(models.Follow.id)
        .filter(
            models.Follow.follower_id == follower_id,
            models.Follow.following_id == following_id,
        )
        .first()
        is not None
    )


def follow(db: Session, follower: models.User, target_id: int) -> None:
    """
    Create the follow edge and bump both counters in one transaction.

    Raises:
        ApiError: 400 for self-follow or duplicate, 404 for an unknown target
    """
    if follower.id == target_id:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Cannot follow yourself")

    get_user_or_404(db, target_id)

    if is_following(db, follower.id, target_id):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Already following")

    db.add(models.Follow(follower_id=follower.id, following_id=target_id))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Already following")

    _bump_counts(db, follower.id, target_id, 1)
    db.commit()
    logger.info(f"User {follower.id} followed {target_id}")


def unfollow(db: Session, follower: models.User, target_id: int) -> bool:
    """Remove the edge if present. Counters only move when a row was deleted."""
    deleted = (
        db.query(models.Follow)
        .filter(
            models.Follow.follower_id == follower.id,
            models.Follow.following_id == target_id,
        )
        .delete(synchronize_session=False)
    )
    if deleted:
        _bump_counts(db, follower.id, target_id, -1)
    db.commit()
    return bool(deleted)


def list_followers(db: Session, user_id: int, params: PageParams) -> tuple[list[models.User], int]:
    query = (
        db.query(models.User)
        .join(models.Follow, models.Follow.follower_id == models.User.id)
        .filter(models.Follow.following_id == user_id)
        .order_by(models.Follow.created_at.desc(), models.Follow.id.desc())
    )
    return paginate(query, params)


def list_following(db: Session, user_id: int, params: PageParams) -> tuple[list[models.User], int]:
    query = (
        db.query(models.User)
        .join(models.Follow, models.Follow.following_id == models.User.id)
        .filter(models.Follow.follower_id == user_id)
        .order_by(models.Follow.created_at.desc(), models.Follow.id.desc())
    )
    return paginate(query, params)
