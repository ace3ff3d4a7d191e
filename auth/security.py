"""
Security utilities for authentication.
Password hashing, JWT access/refresh tokens and refresh-token hashing.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
import bcrypt
from fastapi.security import HTTPBearer
import secrets
import hashlib

import config

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",  # Use bcrypt 2b identifier
    bcrypt__rounds=12  # Standard rounds
)

# Security scheme. auto_error is off so missing credentials produce our own 401.
security = HTTPBearer(auto_error=False)

SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


# Password utilities
def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    """
    Validate password strength.

    Requirements:
    - Minimum 6 characters
    - At least 1 number
    - At least 1 special character
    - Maximum 72 bytes (bcrypt limit)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, "Password is required"

    if len(password) < 6:
        return False, "Password must be at least 6 characters long"

    if len(password.encode('utf-8')) > 72:
        return False, "Password cannot be longer than 72 bytes. Please use a shorter password."

    if not any(char.isdigit() for char in password):
        return False, "Password must contain at least one number"

    if not any(char in SPECIAL_CHARS for char in password):
        return False, f"Password must contain at least one special character ({SPECIAL_CHARS})"

    return True, None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Hash not produced by bcrypt directly; let passlib identify it
        return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Note: Password validation should be done before calling this function.
    Use validate_password() to check password requirements.
    """
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        raise ValueError("Password cannot be longer than 72 bytes. Please use a shorter password.")

    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


# JWT Token utilities
def _encode_token(data: Dict[str, Any], secret_key: str, expire: datetime, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": token_type,
        # Unique id so two tokens minted in the same second still differ
        "jti": secrets.token_hex(8),
    })
    return jwt.encode(to_encode, secret_key, algorithm=config.ALGORITHM)


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
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    return _encode_token(data, secret_key, expire, "access")


def create_refresh_token(
    data: Dict[str, Any],
    secret_key: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT refresh token."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS))
    return _encode_token(data, secret_key, expire, "refresh")


def _decode_token(token: str, secret_key: str, token_type: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def decode_access_token(token: str, secret_key: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT access token.

    Returns:
        Decoded token data or None if invalid, expired, or not an access token
    """
    return _decode_token(token, secret_key, "access")


def decode_refresh_token(token: str, secret_key: str) -> Optional[Dict[str, Any]]:
    """Decode and verify a JWT refresh token. None if invalid."""
    return _decode_token(token, secret_key, "refresh")


# Refresh token utilities
def generate_refresh_token_hash(token: str) -> str:
    """Hash a refresh token for storage."""
    return hashlib.sha256(token.encode()).hexdigest()
