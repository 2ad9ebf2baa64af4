"""Admin endpoints: server log console, user management and the audit trail."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..deps import get_db
from ..logbuffer import log_buffer
from ..pagination import page_params, paginate
from ..services import accounts
from ..utils.audit import log_admin_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/logs", response_model=schemas.LogsResponse)
def get_logs(_admin: models.User = Depends(require_admin)) -> schemas.LogsResponse:
    """Most recent server log lines, oldest first."""
    return schemas.LogsResponse(logs=log_buffer.lines())


@router.post("/console")
def run_console_command(
    payload: schemas.ConsoleRequest,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Run a console command. Only ``clear`` is supported."""
    if payload.command == "clear":
        log_buffer.clear()
        logger.info("Logs cleared via console.")
        log_admin_action(db, admin.id, "console_clear", "logs")
        return {"success": True, "message": "Logs cleared."}
    return {"success": False, "error": "Unknown command"}


@router.get("/users", response_model=schemas.AdminUsersResponse)
def list_users(
    _admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.AdminUsersResponse:
    users = db.query(models.User).order_by(models.User.created_at.desc(), models.User.id.desc()).all()
    return schemas.AdminUsersResponse(users=[schemas.AdminUser.model_validate(user) for user in users])


@router.post("/users/update", response_model=schemas.MessageResponse)
def update_user(
    payload: schemas.AdminUserUpdateRequest,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    user, applied = accounts.admin_update_user(db, payload.user_id, payload.updates)
    log_admin_action(db, admin.id, "update_user", "user", user.id, note=", ".join(applied))
    return schemas.MessageResponse(message="User updated successfully")


@router.get("/audit-log", response_model=schemas.Page[schemas.AuditLogEntry])
def list_audit_log(
    page: int | None = Query(None),
    limit: int | None = Query(None),
    _admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.AuditLogEntry]:
    params = page_params(page, limit, 20, 50)
    query = db.query(models.AuditLog).order_by(models.AuditLog.created_at.desc(), models.AuditLog.id.desc())
    rows, total = paginate(query, params)
    return schemas.Page[schemas.AuditLogEntry](
        total=total,
        page=params.page,
        limit=params.limit,
        items=[schemas.AuditLogEntry.model_validate(row) for row in rows],
    )
