"""
User Management APIs (Admin).
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from database.models import User, UserRole
from auth.dependencies import get_db_session, require_admin
from services.auth_service import AuthService
from services.audit_service import AuditService
from core.exceptions import ValidationError
from core.responses import success_response
from core.serializers import user_to_dict


router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    active_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """
    List users, newest first.
    Admin only.
    """
    role_enum = None
    if role:
        try:
            role_enum = UserRole(role)
        except ValueError:
            raise ValidationError(f"Invalid role: {role}")

    users = AuthService.list_users(db, role=role_enum, active_only=active_only)
    total = len(users)
    start = (page - 1) * limit
    page_items = users[start:start + limit]

    return success_response(data={
        "users": [user_to_dict(u) for u in page_items],
        "total": total,
        "page": page,
        "limit": limit,
    })


@router.post("/{user_id}/deactivate")
async def deactivate_user(
    user_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """
    Soft-deactivate a user. Their existing tokens stop working immediately.
    Admin only.
    """
    user = AuthService.deactivate_user(db, user_id, actor_id=current_user.id)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="user_deactivate",
        user_id=current_user.id,
        resource_type="user",
        resource_id=user.id
    )

    return success_response(data=user_to_dict(user), message="User deactivated successfully")
