"""Blog posts: slugs, listing filters and admin CRUD."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from fastapi import status
from sqlalchemy import String, cast
from sqlalchemy.orm import Session

from .. import models
from ..errors import ApiError
from ..pagination import PageParams, paginate
from ..utils.text import sanitize_text

logger = logging.getLogger(__name__)

PUBLISHED = "published"
DRAFT = "draft"
MAX_SLUG_LENGTH = 80

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify_title(title: str | None) -> str:
    """Lower-case, collapse non-alphanumerics to '-', trim dashes, cap the length."""
    slug = _NON_ALNUM.sub("-", sanitize_text(title).lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH]


def generate_unique_slug(db: Session, title: str | None, exclude_id: int | None = None) -> str:
    """Slug for ``title`` that no other post uses: ``base``, ``base-2``, ``base-3`` ..."""
    base = slugify_title(title) or "post"
    slug = base
    counter = 1
    while True:
        query = db.query(models.BlogPost.id).filter(models.BlogPost.slug == slug)
        if exclude_id is not None:
            query = query.filter(models.BlogPost.id != exclude_id)
        if query.first() is None:
            return slug
        counter += 1
        slug = f"{base}-{counter}"


def normalize_status(value: Any) -> str:
    return PUBLISHED if value == PUBLISHED else DRAFT


def parse_tags(value: Any) -> list[str]:
    """Accept a comma separated string or a list; drop blanks."""
    if value is None:
        return []
    raw = value if isinstance(value, list) else str(value).split(",")
    return [tag for tag in (sanitize_text(item) for item in raw) if tag]


def list_published(
    db: Session,
    params: PageParams,
    q: str | None = None,
    tag: str | None = None,
) -> tuple[list[models.BlogPost], int]:
    query = db.query(models.BlogPost).filter(models.BlogPost.status == PUBLISHED)
    if q:
        query = query.filter(models.BlogPost.title.icontains(q, autoescape=True))
    if tag:
        # Tags live in a JSON array; match the element as the JSON column serializes it
        needle = json.dumps(sanitize_text(tag))
        query = query.filter(cast(models.BlogPost.tags, String).contains(needle, autoescape=True))
    query = query.order_by(models.BlogPost.created_at.desc(), models.BlogPost.id.desc())
    return paginate(query, params)


def list_all(db: Session, params: PageParams) -> tuple[list[models.BlogPost], int]:
    query = db.query(models.BlogPost).order_by(
        models.BlogPost.created_at.desc(), models.BlogPost.id.desc()
    )
    return paginate(query, params)


def list_by_author(db: Session, author_id: int) -> list[models.BlogPost]:
    return (
        db.query(models.BlogPost)
        .filter(models.BlogPost.author_id == author_id)
        .order_by(models.BlogPost.created_at.desc(), models.BlogPost.id.desc())
        .all()
    )


def get_published_by_slug(db: Session, slug: str) -> models.BlogPost:
    post = (
        db.query(models.BlogPost)
        .filter(models.BlogPost.slug == slug, models.BlogPost.status == PUBLISHED)
        .first()
    )
    if post is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Post not found")
    return post


def get_post_or_404(db: Session, post_id: int) -> models.BlogPost:
    post = db.query(models.BlogPost).filter(models.BlogPost.id == post_id).first()
    if post is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Post not found")
    return post


def create_post(db: Session, author_id: int, fields: dict[str, Any]) -> models.BlogPost:
    """
    Create a post from raw request fields.

    Raises:
        ApiError: 400 when title, summary or content is missing
    """
    title = sanitize_text(fields.get("title"))
    summary = sanitize_text(fields.get("summary"))
    content = sanitize_text(fields.get("content"))
    if not title or not summary or not content:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Title, summary, and content are required.")

    post = models.BlogPost(
        title=title[:200],
        summary=summary,
        content=content,
        image_url=sanitize_text(fields.get("image_url")) or None,
        video_url=sanitize_text(fields.get("video_url")) or None,
        tags=parse_tags(fields.get("tags")),
        status=normalize_status(fields.get("status")),
        slug=generate_unique_slug(db, title),
        author_id=author_id,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Blog post created: {post.slug} ({post.status})")
    return post


def update_post(db: Session, post_id: int, fields: dict[str, Any]) -> models.BlogPost:
    """Apply provided fields; a new title regenerates the slug."""
    post = get_post_or_404(db, post_id)
    updated = False

    title = sanitize_text(fields.get("title"))
    if title:
        post.title = title[:200]
        post.slug = generate_unique_slug(db, title, exclude_id=post.id)
        updated = True
    for key in ("summary", "content"):
        value = sanitize_text(fields.get(key))
        if value:
            setattr(post, key, value)
            updated = True
    if fields.get("status"):
        post.status = normalize_status(fields["status"])
        updated = True
    if "video_url" in fields:
        post.video_url = sanitize_text(fields.get("video_url")) or None
        updated = True
    if "tags" in fields:
        post.tags = parse_tags(fields.get("tags"))
        updated = True
    image_url = sanitize_text(fields.get("image_url"))
    if image_url:
        post.image_url = image_url
        updated = True

    if not updated:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No updates provided")

    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post_id: int) -> None:
    post = get_post_or_404(db, post_id)
    db.delete(post)
    db.commit()
