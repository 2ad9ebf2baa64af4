"""Blog endpoints: public listing/reading and admin CRUD."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..deps import get_db
from ..pagination import page_params
from ..services import blog
from ..utils.audit import log_admin_action

router = APIRouter(prefix="/api", tags=["Blog"])

PUBLIC_PAGE_DEFAULT = 6
PUBLIC_PAGE_MAX = 24
ADMIN_PAGE_DEFAULT = 20
ADMIN_PAGE_MAX = 50


@router.get("/blog", response_model=schemas.Page[schemas.BlogPostSummary])
def list_posts(
    page: int | None = Query(None),
    limit: int | None = Query(None),
    q: str | None = Query(None, description="Case-insensitive title search"),
    tag: str | None = Query(None),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.BlogPostSummary]:
    """Published posts, newest first."""
    params = page_params(page, limit, PUBLIC_PAGE_DEFAULT, PUBLIC_PAGE_MAX)
    posts, total = blog.list_published(db, params, q=q, tag=tag)
    return schemas.Page[schemas.BlogPostSummary](
        total=total,
        page=params.page,
        limit=params.limit,
        items=[schemas.BlogPostSummary.model_validate(post) for post in posts],
    )


@router.get("/blog/{slug}", response_model=schemas.BlogPostResponse)
def get_post(slug: str, db: Session = Depends(get_db)) -> schemas.BlogPostResponse:
    post = blog.get_published_by_slug(db, slug)
    return schemas.BlogPostResponse(post=schemas.BlogPostDetail.model_validate(post))


@router.get("/admin/blog", response_model=schemas.Page[schemas.BlogPostDetail])
def admin_list_posts(
    page: int | None = Query(None),
    limit: int | None = Query(None),
    _admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.BlogPostDetail]:
    """All posts, drafts included."""
    params = page_params(page, limit, ADMIN_PAGE_DEFAULT, ADMIN_PAGE_MAX)
    posts, total = blog.list_all(db, params)
    return schemas.Page[schemas.BlogPostDetail](
        total=total,
        page=params.page,
        limit=params.limit,
        items=[schemas.BlogPostDetail.model_validate(post) for post in posts],
    )


@router.post("/admin/blog", response_model=schemas.BlogPostResponse)
def admin_create_post(
    payload: schemas.BlogPostWrite,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.BlogPostResponse:
    post = blog.create_post(db, admin.id, payload.model_dump())
    log_admin_action(db, admin.id, "create_blog_post", "blog_post", post.id)
    return schemas.BlogPostResponse(post=schemas.BlogPostDetail.model_validate(post))


@router.patch("/admin/blog/{post_id}", response_model=schemas.BlogPostResponse)
def admin_update_post(
    post_id: int,
    payload: schemas.BlogPostWrite,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.BlogPostResponse:
    """Partial update. Only fields present in the body are touched."""
    post = blog.update_post(db, post_id, payload.model_dump(exclude_unset=True))
    log_admin_action(db, admin.id, "update_blog_post", "blog_post", post.id)
    return schemas.BlogPostResponse(post=schemas.BlogPostDetail.model_validate(post))


@router.delete("/admin/blog/{post_id}", response_model=schemas.MessageResponse)
def admin_delete_post(
    post_id: int,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    blog.delete_post(db, post_id)
    log_admin_action(db, admin.id, "delete_blog_post", "blog_post", post_id)
    return schemas.MessageResponse(message="Blog deleted")
