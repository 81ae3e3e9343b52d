"""
Authentication endpoints: register, token (login), logout, me.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User
from auth.dependencies import get_db_session, get_current_user
from services.auth_service import AuthService
from services.audit_service import AuditService
from core.responses import success_response
from core.serializers import user_to_dict
from core.logger import logger


router = APIRouter(prefix="/api/auth", tags=["authentication"])


# Request Models
class RegisterRequest(BaseModel):
    """Registration request."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request. ``username`` may also be the account email."""
    username: Optional[str] = None
    password: Optional[str] = None


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request_data: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """
    Register a new user account and return a token for it.
    """
    user = AuthService.create_user(
        db,
        username=request_data.username,
        email=request_data.email,
        password=request_data.password,
    )
    token = AuthService.create_token(user)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="register",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=success_response(
            data={"token": token, "user": user_to_dict(user)},
            message="User registered successfully"
        )
    )


@router.post("/token")
async def login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """
    Exchange username (or email) and password for a bearer token.
    """
    user = AuthService.authenticate_user(db, request_data.username, request_data.password)
    token = AuthService.create_token(user)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="login",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )
    logger.info(f"User logged in: {user.username}")

    return success_response(
        data={
            "access_token": token,
            "token_type": "bearer",
            "user": user_to_dict(user),
        },
        message="Login successful"
    )


@router.post("/logout")
async def logout():
    """Tokens are stateless; the client simply discards its token."""
    return success_response(message="Logged out successfully")


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    """Current user profile."""
    return success_response(data=user_to_dict(current_user))
