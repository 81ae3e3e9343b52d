"""
Authentication dependencies for FastAPI.
"""
from typing import Optional
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database.models import User, UserRole
from auth.security import security_optional, verify_token
from core.exceptions import Unauthorized, Forbidden, Unexpected


def get_db_session(request: Request):
    """Request-scoped session from the Database handle on app.state."""
    database = getattr(request.app.state, "db", None)
    if database is None:
        raise Unexpected("Database not initialized")
    with database.get_session() as session:
        yield session


def get_storage(request: Request):
    """Object store handle on app.state."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise Unexpected("Storage not initialized")
    return storage


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security_optional),
    db: Session = Depends(get_db_session)
) -> User:
    """
    Resolve the caller from the bearer token.

    Raises:
        Unauthorized: missing/invalid token, unknown or deactivated user
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    user_id = verify_token(credentials.credentials)
    if user_id is None:
        raise Unauthorized("Invalid authentication credentials")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise Unauthorized("User not found")

    if not user.is_active:
        raise Unauthorized("Account has been deactivated")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Only admins pass."""
    if current_user.role != UserRole.ADMIN:
        raise Forbidden("Admin access required")
    return current_user
