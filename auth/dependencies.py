"""
Authentication dependencies for FastAPI.
"""
from typing import Optional
from fastapi import Depends, HTTPException, status, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, selectinload

from database.models import User, AppRole
from auth.security import security, decode_access_token
from core.logger import logger
import config


def get_db_session():
    """Get database session."""
    if not config.db:
        raise HTTPException(status_code=503, detail="Database not initialized")
    with config.db.get_session() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db_session)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: 401 if no/invalid token or unknown user, 403 if inactive
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials, config.SECRET_KEY)
    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid authentication credentials")

    user = (
        db.query(User)
        .options(selectinload(User.roles), selectinload(User.profile))
        .filter(User.id == user_id)
        .first()
    )
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


def require_role(allowed_roles: list[str]):
    """
    Dependency factory for role-based access control.
    The caller passes if they hold any of allowed_roles.
    """
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if not current_user.has_role(*allowed_roles):
            logger.warning(
                f"Access denied for {current_user.email}: has {current_user.role_values}, needs {allowed_roles}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(allowed_roles)}"
            )
        return current_user

    return role_checker


require_admin = require_role([AppRole.ADMIN.value])
require_staff = require_role([AppRole.ADMIN.value, AppRole.FACULTY.value])
require_prefect_or_admin = require_role([AppRole.ADMIN.value, AppRole.PREFECT.value])
require_prefect_or_staff = require_role([AppRole.ADMIN.value, AppRole.FACULTY.value, AppRole.PREFECT.value])


def is_staff(user: User) -> bool:
    """Admins and faculty see every row of prefect-owned tables."""
    return user.has_role(AppRole.ADMIN.value, AppRole.FACULTY.value)


def is_admin(user: User) -> bool:
    return user.has_role(AppRole.ADMIN.value)
