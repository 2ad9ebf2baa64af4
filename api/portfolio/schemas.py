from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(ApiModel):
    success: bool = True
    message: str | None = None


T = TypeVar("T")


class Page(ApiModel, Generic[T]):
    """Offset-paginated response."""

    success: bool = True
    total: int
    page: int
    limit: int
    items: list[T]


# ============================================================================
# HEALTH
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


# ============================================================================
# AUTH
# ============================================================================


# Fields are optional so missing values produce the service's own error message.
class RegisterRequest(ApiModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(ApiModel):
    email: str | None = None
    password: str | None = None
    type: Literal["user", "admin"] = "user"
    master_key: str | None = None


class LoginResponse(ApiModel):
    success: bool = True
    role: Literal["user", "admin"]
    name: str


class AuthStatus(ApiModel):
    authenticated: bool
    name: str | None = None
    email: str | None = None
    is_admin: bool = False


class EmailRequest(ApiModel):
    email: str | None = None


class ResetPasswordRequest(ApiModel):
    token: str | None = None
    password: str | None = None


# ============================================================================
# USERS
# ============================================================================


class UserMe(ApiModel):
    """The signed-in user's own record."""

    id: int
    name: str
    email: str
    avatar_url: str | None = None
    bio: str | None = None
    is_admin: bool
    is_verified: bool
    created_at: datetime | None = None


class MeResponse(ApiModel):
    success: bool = True
    user: UserMe


class AccountResponse(ApiModel):
    success: bool = True
    account: UserMe


class AccountUpdateRequest(ApiModel):
    name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    password: str | None = None


class UserPublic(ApiModel):
    """Public profile."""

    id: int
    name: str
    avatar_url: str | None = None
    bio: str | None = None
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime | None = None


class UserPublicResponse(ApiModel):
    success: bool = True
    user: UserPublic


class UserProfileUpdate(ApiModel):
    name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


class IsFollowingResponse(ApiModel):
    success: bool = True
    is_following: bool


# ============================================================================
# BLOG
# ============================================================================


class BlogPostSummary(ApiModel):
    id: int
    title: str
    slug: str
    summary: str
    image_url: str | None = None
    video_url: str | None = None
    tags: list[str] = []
    created_at: datetime | None = None


class BlogPostDetail(BlogPostSummary):
    content: str
    status: Literal["draft", "published"]
    author_id: int | None = None
    updated_at: datetime | None = None


class BlogPostResponse(ApiModel):
    success: bool = True
    post: BlogPostDetail


class MyPost(ApiModel):
    id: int
    title: str
    slug: str
    status: str
    created_at: datetime | None = None


class MyPostsResponse(ApiModel):
    success: bool = True
    posts: list[MyPost]


class BlogPostWrite(ApiModel):
    """Create/update payload. Tags may be a list or a comma separated string."""

    title: str | None = None
    summary: str | None = None
    content: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    tags: list[str] | str | None = None
    status: str | None = None


# ============================================================================
# SITE CONTENT
# ============================================================================


class ContentPatchResponse(ApiModel):
    success: bool = True
    changed: list[str]
    content: dict[str, Any]


class DraftResponse(ApiModel):
    success: bool = True
    version: int
    data: dict[str, Any]
    updated_at: datetime | None = None
    changed: list[str] | None = None


class PublishResponse(ApiModel):
    success: bool = True
    version: int


class HistoryItem(ApiModel):
    version: int
    updated_at: datetime | None = None
    is_active: bool


class HistoryResponse(ApiModel):
    success: bool = True
    history: list[HistoryItem]


# ============================================================================
# ADMIN
# ============================================================================


class AdminUser(ApiModel):
    """User row as listed to admins. Never carries the password hash."""

    id: int
    name: str
    email: str
    is_admin: bool
    is_verified: bool
    followers_count: int = 0
    following_count: int = 0
    last_login_at: datetime | None = None
    last_login_ip: str | None = None
    created_at: datetime | None = None


class AdminUsersResponse(ApiModel):
    success: bool = True
    users: list[AdminUser]


class AdminUserUpdateRequest(ApiModel):
    user_id: int | None = None
    updates: dict[str, Any] | None = None


class ConsoleRequest(ApiModel):
    command: str | None = None


class LogsResponse(ApiModel):
    success: bool = True
    logs: list[str]


class AuditLogEntry(ApiModel):
    id: int
    actor_id: int | None = None
    action: str
    target_type: str | None = None
    target_id: str | None = None
    note: str | None = None
    created_at: datetime | None = None
