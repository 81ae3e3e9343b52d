"""
Credential utilities: password hashing and bearer-token issuance/verification.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple

import bcrypt
from email_validator import validate_email as check_email_syntax, EmailNotValidError
from jose import JWTError, jwt
from fastapi.security import HTTPBearer

from core.logger import logger
import config

# Security scheme. auto_error is off so a missing header is reported through
# the regular 401 envelope instead of FastAPI's built-in error.
security_optional = HTTPBearer(auto_error=False)


# Password utilities
def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    """
    Validate password strength.

    Requirements:
    - Minimum 6 characters
    - Maximum 72 bytes (bcrypt limit)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, "Password is required"

    if len(password) < 6:
        return False, "Password must be at least 6 characters"

    if len(password.encode('utf-8')) > 72:
        return False, "Password cannot be longer than 72 bytes. Please use a shorter password."

    return True, None


def validate_username(username: str) -> Tuple[bool, Optional[str]]:
    """Usernames are 3 to 50 characters."""
    if len(username) < 3 or len(username) > 50:
        return False, "Username must be between 3 and 50 characters"
    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Syntax-only email check; no DNS lookups."""
    try:
        check_email_syntax(email, check_deliverability=False)
    except EmailNotValidError:
        return False, "Invalid email format"
    return True, None


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Note: Password validation should be done before calling this function.
    """
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        raise ValueError("Password cannot be longer than 72 bytes. Please use a shorter password.")
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed hash or over-long password
        logger.warning("Password verification failed on malformed input")
        return False


# JWT Token utilities
def create_access_token(
    data: Dict[str, Any],
    secret_key: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in token
        secret_key: Secret key for signing
        expires_delta: Optional expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=config.JWT_EXPIRE_DAYS)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": "access"
    })
    return jwt.encode(to_encode, secret_key, algorithm=config.ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT access token.

    Returns:
        Decoded token data or None if invalid
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[config.ALGORITHM])
        if payload.get("type") != "access":
            return None
        return payload
    except JWTError:
        return None


def issue_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue an opaque bearer token bound to a user id."""
    return create_access_token({"sub": user_id}, config.SECRET_KEY, expires_delta)


def verify_token(token: str) -> Optional[str]:
    """Return the user id a token is bound to, or None if the token is invalid."""
    payload = decode_access_token(token, config.SECRET_KEY)
    if payload is None:
        return None
    return payload.get("sub")
