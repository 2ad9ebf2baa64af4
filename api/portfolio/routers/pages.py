"""Server-rendered pages: the public site, the login form and the admin editor."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from .. import models
from ..admin_form import FIELD_BINDINGS, FormError, build_patch, content_to_form, dirty_fields
from ..auth import (
    clear_session_cookie,
    csrf_token,
    get_client_ip,
    get_current_user_optional,
    is_admin_token,
    set_session_cookie,
    verify_form_request,
)
from ..content import normalize_content
from ..deps import get_db
from ..errors import ApiError
from ..renderer import build_page
from ..services import accounts, site_content

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"], include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

NO_STORE = {"Cache-Control": "no-store"}


def _admin_redirect() -> RedirectResponse:
    return RedirectResponse(url="/login?tab=admin", status_code=303)


@router.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    mode: str | None = Query(None),
    token: str | None = Query(None),
    user: models.User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Public page. ``?mode=draft`` previews the draft for admins or the admin token."""
    preview = mode == "draft" and ((user is not None and user.is_admin) or is_admin_token(token))
    if preview:
        draft = site_content.get_or_create_draft(db, user.id if user else None)
        context = build_page(draft.data, preview=True)
        return templates.TemplateResponse(request, "index.html", context, headers=NO_STORE)

    context = build_page(site_content.get_published_content(db))
    return templates.TemplateResponse(request, "index.html", context)


@router.get("/login", response_class=HTMLResponse)
def login_page(
    request: Request,
    tab: str = Query("user"),
    verified: str | None = Query(None),
):
    context = {
        "tab": "admin" if tab == "admin" else "user",
        "notice": "Email verified. You can sign in now." if verified else None,
        "error": None,
        "email": "",
    }
    return templates.TemplateResponse(request, "login.html", context)


@router.post("/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    login_type: str = Form("user", alias="type"),
    master_key: str = Form("", alias="masterKey"),
    db: Session = Depends(get_db),
):
    """Form login. Errors re-render the form with the same status the JSON API uses."""
    verify_form_request(request, require_token=False)
    login_type = "admin" if login_type == "admin" else "user"
    try:
        result = accounts.login(
            db,
            email=email,
            password=password,
            login_type=login_type,
            master_key=master_key,
            ip=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    except ApiError as e:
        context = {"tab": login_type, "notice": None, "error": e.detail, "email": email}
        return templates.TemplateResponse(request, "login.html", context, status_code=e.status_code)

    response = RedirectResponse(url="/admin" if result.role == "admin" else "/", status_code=303)
    set_session_cookie(response, result.user)
    return response


def _render_admin(
    request: Request,
    db: Session,
    admin: models.User,
    form_values: dict[str, str] | None = None,
    error: str | None = None,
    notice: str | None = None,
    status_code: int = 200,
):
    draft = site_content.get_or_create_draft(db, admin.id)
    content = normalize_content(draft.data)
    context = {
        "admin": admin,
        "bindings": FIELD_BINDINGS,
        "values": form_values if form_values is not None else content_to_form(content),
        "draft_version": draft.version,
        "history": site_content.list_history(db),
        "csrf_token": csrf_token(request),
        "error": error,
        "notice": notice,
    }
    return templates.TemplateResponse(
        request, "admin.html", context, status_code=status_code, headers=NO_STORE
    )


@router.get("/admin", response_class=HTMLResponse)
def admin_page(
    request: Request,
    saved: int | None = Query(None),
    published: int | None = Query(None),
    user: models.User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    if user is None or not user.is_admin:
        return _admin_redirect()

    notice = None
    if saved is not None:
        notice = f"Draft saved ({saved} field{'s' if saved != 1 else ''} changed)."
    elif published is not None:
        notice = f"Published version {published}."
    return _render_admin(request, db, user, notice=notice)


@router.post("/admin/draft", response_class=HTMLResponse)
async def admin_save_draft(
    request: Request,
    user: models.User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Write only the fields the editor changed into the draft."""
    if user is None or not user.is_admin:
        return _admin_redirect()

    form = await request.form()
    verify_form_request(request, str(form.get("csrfToken") or ""))
    submitted = {key: str(value) for key, value in form.items()}

    draft = site_content.get_or_create_draft(db, user.id)
    content = normalize_content(draft.data)
    try:
        dirty = dirty_fields(content, submitted)
    except FormError as e:
        return _render_admin(request, db, user, form_values=submitted, error=str(e), status_code=400)

    if dirty:
        site_content.patch_draft(db, build_patch(content, dirty), user.id)
        logger.info(f"Admin {user.id} saved draft fields: {sorted(dirty)}")
    return RedirectResponse(url=f"/admin?saved={len(dirty)}", status_code=303)


@router.post("/admin/publish")
def admin_publish(
    request: Request,
    submitted_token: str = Form("", alias="csrfToken"),
    user: models.User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    if user is None or not user.is_admin:
        return _admin_redirect()
    verify_form_request(request, submitted_token)
    published = site_content.publish(db, user.id)
    return RedirectResponse(url=f"/admin?published={published.version}", status_code=303)


@router.post("/admin/rollback/{version}")
def admin_rollback(
    version: int,
    request: Request,
    submitted_token: str = Form("", alias="csrfToken"),
    user: models.User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    if user is None or not user.is_admin:
        return _admin_redirect()
    verify_form_request(request, submitted_token)
    published = site_content.rollback(db, version, user.id)
    return RedirectResponse(url=f"/admin?published={published.version}", status_code=303)


@router.post("/admin/logout")
def admin_logout(request: Request):
    verify_form_request(request, require_token=False)
    response = RedirectResponse(url="/login?tab=admin", status_code=303)
    clear_session_cookie(response)
    return response
