"""
Account store: user registration, lookup, authentication and deactivation.
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import User, UserRole
from database.connection import ConstraintViolation, commit_or_raise
from auth.security import (
    verify_password, get_password_hash, validate_password, validate_username,
    validate_email, issue_token
)
from core.exceptions import ValidationError, MissingField, Unauthorized, NotFound
from core.logger import logger
import config


class AuthService:
    """Service for account operations."""

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def find_by_username_or_email(db: Session, username: str, email: str) -> Optional[User]:
        """First user whose username or email (case-insensitive) matches."""
        return db.query(User).filter(
            or_(User.username == username, func.lower(User.email) == email.lower())
        ).first()

    @staticmethod
    def find_by_identifier(db: Session, identifier: str) -> Optional[User]:
        """Login lookup: the identifier may be a username or an email."""
        return db.query(User).filter(
            or_(User.username == identifier, func.lower(User.email) == identifier.lower())
        ).first()

    @staticmethod
    def create_user(
        db: Session,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: UserRole = UserRole.USER
    ) -> User:
        """
        Create a new user.

        Raises:
            MissingField: username, email or password absent
            ValidationError: malformed input or username/email already taken
        """
        username = (username or "").strip()
        email = (email or "").strip()
        if not username or not email or not password:
            raise MissingField("Missing required fields")

        for is_valid, error_message in (
            validate_username(username),
            validate_password(password),
            validate_email(email),
        ):
            if not is_valid:
                raise ValidationError(error_message)

        if AuthService.find_by_username_or_email(db, username, email):
            raise ValidationError("User with this email or username already exists")

        user = User(
            username=username,
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            is_active=True,
        )
        db.add(user)
        try:
            commit_or_raise(db)
        except ConstraintViolation as e:
            # Concurrent registration won the unique index
            if e.kind == "unique":
                raise ValidationError("User with this email or username already exists") from e
            raise
        logger.info(f"Created user: {username} (role: {role.value})")
        return user

    @staticmethod
    def authenticate_user(db: Session, identifier: Optional[str], password: Optional[str]) -> User:
        """
        Check credentials.

        Raises:
            MissingField: identifier or password absent
            Unauthorized: unknown user, wrong password, or deactivated account
        """
        if not identifier or not password:
            raise MissingField("Username and password are required")

        user = AuthService.find_by_identifier(db, identifier.strip())
        if user is None:
            raise Unauthorized("Invalid credentials")

        if not user.is_active:
            raise Unauthorized("Account has been deactivated")

        if not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {identifier}")
            raise Unauthorized("Invalid credentials")

        return user

    @staticmethod
    def create_token(user: User) -> str:
        return issue_token(user.id)

    @staticmethod
    def list_users(db: Session, role: Optional[UserRole] = None, active_only: bool = False) -> List[User]:
        query = db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.order_by(User.created_at.desc()).all()

    @staticmethod
    def deactivate_user(db: Session, user_id: str, actor_id: str) -> User:
        """
        Soft-deactivate a user. Users are never hard-deleted.

        Raises:
            NotFound: unknown user
            ValidationError: an admin deactivating their own account
        """
        user = AuthService.get_user_by_id(db, user_id)
        if user is None:
            raise NotFound("User not found")
        if user.id == actor_id:
            raise ValidationError("You cannot deactivate your own account")
        user.is_active = False
        db.commit()
        logger.info(f"Deactivated user: {user.username} (by {actor_id})")
        return user

    @staticmethod
    def ensure_admin_user(
        db: Session,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None
    ) -> Optional[User]:
        """
        Make sure the configured admin account exists.

        Returns the created admin, or None if a user with that username/email
        already exists.
        """
        username = username or config.ADMIN_USERNAME
        email = email or config.ADMIN_EMAIL
        password = password or config.ADMIN_PASSWORD

        if AuthService.find_by_username_or_email(db, username, email):
            logger.info("Admin user already exists")
            return None

        admin = AuthService.create_user(db, username, email, password, role=UserRole.ADMIN)
        logger.info(f"Admin user ensured: {username}")
        return admin
