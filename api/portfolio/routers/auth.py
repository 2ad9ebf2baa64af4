"""Authentication endpoints: register, login, verification and password reset."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import (
    clear_session_cookie,
    get_client_ip,
    get_current_user,
    get_session_claims,
    set_session_cookie,
)
from ..deps import get_db
from ..services import accounts, blog
from ..services.rate_limit import auth_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(auth_rate_limit)],
)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    """Create an unverified account and send the verification email."""
    accounts.register(db, payload.name, payload.email, payload.password)
    return schemas.MessageResponse(message="Account created! Please verify your email.")


@router.post(
    "/login",
    response_model=schemas.LoginResponse,
    dependencies=[Depends(auth_rate_limit)],
)
def login(
    payload: schemas.LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> schemas.LoginResponse:
    """
    Sign in and set the session cookie.

    ``type: "admin"`` additionally requires ``masterKey``.
    """
    result = accounts.login(
        db,
        email=payload.email,
        password=payload.password,
        login_type=payload.type,
        master_key=payload.master_key,
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    set_session_cookie(response, result.user)
    return schemas.LoginResponse(role=result.role, name=result.user.name)


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(response: Response) -> schemas.MessageResponse:
    clear_session_cookie(response)
    return schemas.MessageResponse()


@router.get("/me", response_model=schemas.MeResponse)
def get_me(user: models.User = Depends(get_current_user)) -> schemas.MeResponse:
    return schemas.MeResponse(user=schemas.UserMe.model_validate(user))


@router.get("/me/posts", response_model=schemas.MyPostsResponse)
def get_my_posts(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.MyPostsResponse:
    posts = blog.list_by_author(db, user.id)
    return schemas.MyPostsResponse(posts=[schemas.MyPost.model_validate(post) for post in posts])


@router.get("/auth-status", response_model=schemas.AuthStatus)
def auth_status(request: Request) -> schemas.AuthStatus:
    """Session state as seen by the cookie alone."""
    claims = get_session_claims(request)
    if claims is None:
        return schemas.AuthStatus(authenticated=False)
    return schemas.AuthStatus(
        authenticated=True,
        name=claims.name,
        email=claims.email,
        is_admin=claims.is_admin,
    )


@router.get("/verify-email", response_model=schemas.MessageResponse)
def verify_email(
    request: Request,
    token: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """Confirm an email address. Browsers are redirected to the login page."""
    accounts.verify_email(db, token)
    if "text/html" in request.headers.get("accept", ""):
        return RedirectResponse(url="/login?verified=1", status_code=303)
    return schemas.MessageResponse(message="Email verified")


@router.post(
    "/resend-verification",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(auth_rate_limit)],
)
def resend_verification(
    payload: schemas.EmailRequest,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    message = accounts.resend_verification(db, payload.email)
    return schemas.MessageResponse(message=message)


@router.post(
    "/forgot-password",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(auth_rate_limit)],
)
def forgot_password(
    payload: schemas.EmailRequest,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    """Always reports success so the endpoint cannot be used to discover accounts."""
    accounts.forgot_password(db, payload.email)
    return schemas.MessageResponse(message="If the account exists, a reset email has been sent.")


@router.post(
    "/reset-password",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(auth_rate_limit)],
)
def reset_password(
    payload: schemas.ResetPasswordRequest,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    accounts.reset_password(db, payload.token, payload.password)
    return schemas.MessageResponse(message="Password reset successful.")


@router.get("/account", response_model=schemas.AccountResponse)
def get_account(user: models.User = Depends(get_current_user)) -> schemas.AccountResponse:
    return schemas.AccountResponse(account=schemas.UserMe.model_validate(user))


@router.put("/account", response_model=schemas.MessageResponse)
def update_account(
    payload: schemas.AccountUpdateRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    accounts.update_profile(
        db,
        user,
        name=payload.name,
        bio=payload.bio,
        avatar_url=payload.avatar_url,
        password=payload.password,
    )
    return schemas.MessageResponse(message="Account updated successfully")
