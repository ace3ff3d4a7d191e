"""
Profile APIs: own profile, and profile lists used to resolve names.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User
from auth.dependencies import get_db_session, get_current_user, require_prefect_or_staff
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import profile_to_dict


router = APIRouter(prefix="/api/profiles", tags=["profiles"])


class ProfileUpdate(BaseModel):
    """Update own profile request."""
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    studentId: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    yearLevel: Optional[int] = None
    section: Optional[str] = None
    avatarUrl: Optional[str] = None


FIELD_MAP = {
    "firstName": "first_name",
    "lastName": "last_name",
    "studentId": "student_id",
    "phone": "phone",
    "department": "department",
    "yearLevel": "year_level",
    "section": "section",
    "avatarUrl": "avatar_url",
}


@router.get("/me")
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Get own profile."""
    profile = ProfileService.get_profile(db, current_user.id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile_to_dict(profile)


@router.put("/me")
async def update_my_profile(
    data: ProfileUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Update own profile. Only supplied fields change."""
    profile = ProfileService.get_profile(db, current_user.id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        profile = ProfileService.update_profile(db, profile, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db,
        request=request,
        action="profile_update",
        user_id=current_user.id,
        resource_type="profile",
        resource_id=profile.id,
        details={"fields": sorted(updates.keys())}
    )
    return profile_to_dict(profile)


@router.get("")
async def list_profiles(
    search: Optional[str] = Query(None, description="Search by name or email"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """All profiles (id and names), for resolving references."""
    return [profile_to_dict(p) for p in ProfileService.list_profiles(db, search=search)]


@router.get("/prefects")
async def list_prefects(
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    """Profiles of users holding the prefect role."""
    return [profile_to_dict(p) for p in ProfileService.list_prefects(db)]


@router.get("/{user_id}")
async def get_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    profile = ProfileService.get_profile(db, user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile_to_dict(profile)
