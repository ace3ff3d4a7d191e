"""
User Management APIs (admin only): list users with roles, assign and remove roles.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from typing import Optional, List

from database.models import User, AppRole
from auth.dependencies import get_db_session, require_admin
from services.auth_service import AuthService
from services.user_service import UserService
from services.audit_service import AuditService
from core.serializers import user_to_dict
from core.validators import parse_enum
import config


router = APIRouter(prefix="/api/users", tags=["users"])


# Request/Response Models
class UserCreate(BaseModel):
    """Create user request (admin)."""
    email: EmailStr
    password: str
    firstName: str
    lastName: str
    studentId: Optional[str] = None
    roles: List[str] = [AppRole.STUDENT.value]


class RoleRequest(BaseModel):
    """Assign/remove role request."""
    role: str


class StatusRequest(BaseModel):
    """Activate/deactivate request."""
    isActive: bool


class UserListResponse(BaseModel):
    """User list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = UserService.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/stats")
async def get_user_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """User counts by role."""
    return UserService.count_by_role(db)


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    search: Optional[str] = Query(None, description="Search by name, email or student ID"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """List users with their roles."""
    try:
        total, users = UserService.list_users(
            db, search=search, role=role, is_active=is_active, page=page, limit=limit
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return UserListResponse(
        data=[user_to_dict(u) for u in users],
        total=total,
        page=page,
        limit=limit
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Create an account with the given roles."""
    try:
        roles = [parse_enum(AppRole, r, "role") for r in data.roles] or [AppRole.STUDENT]
        user = AuthService.create_user(
            db=db,
            email=data.email,
            password=data.password,
            first_name=data.firstName,
            last_name=data.lastName,
            student_id=data.studentId,
            roles=roles,
            assigned_by=current_user.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db,
        request=request,
        action="user_create",
        user_id=current_user.id,
        resource_type="user",
        resource_id=user.id,
        details={"roles": user.role_values}
    )
    return user_to_dict(user)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    return user_to_dict(_get_user_or_404(db, user_id))


@router.post("/{user_id}/roles")
async def assign_role(
    user_id: str,
    data: RoleRequest,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Assign a role. Assigning a role the user already holds is a no-op."""
    user = _get_user_or_404(db, user_id)
    try:
        added = UserService.assign_role(db, user, data.role, assigned_by=current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if added:
        AuditService.log_from_request(
            db=db,
            request=request,
            action="role_assign",
            user_id=current_user.id,
            resource_type="user",
            resource_id=user.id,
            details={"role": data.role.lower()}
        )
    return user_to_dict(user)


@router.delete("/{user_id}/roles/{role}")
async def remove_role(
    user_id: str,
    role: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Remove a role. Admins cannot drop their own admin role."""
    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id and role.lower() == AppRole.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot remove your own admin role")
    try:
        removed = UserService.remove_role(db, user, role)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User does not have this role")

    AuditService.log_from_request(
        db=db,
        request=request,
        action="role_remove",
        user_id=current_user.id,
        resource_type="user",
        resource_id=user.id,
        details={"role": role.lower()}
    )
    return user_to_dict(user)


@router.patch("/{user_id}/status")
async def set_user_status(
    user_id: str,
    data: StatusRequest,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Activate or deactivate an account."""
    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id and not data.isActive:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")
    user = UserService.set_active(db, user, data.isActive)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="user_status",
        user_id=current_user.id,
        resource_type="user",
        resource_id=user.id,
        details={"isActive": data.isActive}
    )
    return user_to_dict(user)
