"""
Duty assignment APIs.
Admins manage duties; admins and faculty see all; prefects see duties naming them.
"""
from datetime import date, time
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from database.models import User, DutyAssignment
from auth.dependencies import get_db_session, require_admin, require_prefect_or_staff, is_staff
from services.duty_service import DutyService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from services.prefect_ids import involves_prefect
from core.serializers import duty_to_dict


router = APIRouter(prefix="/api/duties", tags=["duties"])


class DutyCreate(BaseModel):
    """Create duty request. prefectIds may hold one or several prefects."""
    title: Optional[str] = None
    dutyDate: Optional[date] = None
    prefectIds: List[str] = []
    description: Optional[str] = None
    startTime: Optional[time] = None
    endTime: Optional[time] = None
    location: Optional[str] = None


class DutyUpdate(BaseModel):
    """Update duty request."""
    title: Optional[str] = None
    dutyDate: Optional[date] = None
    prefectIds: Optional[List[str]] = None
    description: Optional[str] = None
    startTime: Optional[time] = None
    endTime: Optional[time] = None
    location: Optional[str] = None
    status: Optional[str] = None


class DutyStatusUpdate(BaseModel):
    status: str


FIELD_MAP = {
    "title": "title",
    "dutyDate": "duty_date",
    "prefectIds": "prefect_ids",
    "description": "description",
    "startTime": "start_time",
    "endTime": "end_time",
    "location": "location",
    "status": "status",
}


def _get_visible_duty(db: Session, duty_id: str, user: User) -> DutyAssignment:
    duty = DutyService.get_duty(db, duty_id)
    if not duty or (not is_staff(user) and not involves_prefect(duty.prefect_id, user.id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Duty not found")
    return duty


@router.get("/stats")
async def duty_stats(
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    """Counts by status. Prefects get counts over their own duties."""
    return DutyService.get_stats(db, prefect_id=None if is_staff(current_user) else current_user.id)


@router.get("")
async def list_duties(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    prefect_id: Optional[str] = Query(None, alias="prefectId"),
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    """List duties with prefect names resolved."""
    if not is_staff(current_user):
        prefect_id = current_user.id
    try:
        duties = DutyService.list_duties(
            db, status=status_filter, search=search, date_from=date_from, date_to=date_to, prefect_id=prefect_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    names = ProfileService.name_lookup(db)
    return [duty_to_dict(d, names) for d in duties]


@router.get("/{duty_id}")
async def get_duty(
    duty_id: str,
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    duty = _get_visible_duty(db, duty_id, current_user)
    return duty_to_dict(duty, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_duty(
    data: DutyCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Assign a duty to one or more prefects. Admin only."""
    try:
        duty = DutyService.create_duty(
            db,
            title=data.title,
            duty_date=data.dutyDate,
            prefect_ids=data.prefectIds,
            assigned_by=current_user.id,
            description=data.description,
            start_time=data.startTime,
            end_time=data.endTime,
            location=data.location,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="duty_create", user_id=current_user.id,
        resource_type="duty", resource_id=duty.id
    )
    return duty_to_dict(duty, ProfileService.name_lookup(db))


@router.put("/{duty_id}")
async def update_duty(
    duty_id: str,
    data: DutyUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    duty = _get_visible_duty(db, duty_id, current_user)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        duty = DutyService.update_duty(db, duty, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="duty_update", user_id=current_user.id,
        resource_type="duty", resource_id=duty.id, details={"fields": sorted(updates.keys())}
    )
    return duty_to_dict(duty, ProfileService.name_lookup(db))


@router.patch("/{duty_id}/status")
async def update_duty_status(
    duty_id: str,
    data: DutyStatusUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Mark a duty assigned, completed or missed."""
    duty = _get_visible_duty(db, duty_id, current_user)
    try:
        duty = DutyService.update_duty(db, duty, {"status": data.status})
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="duty_status", user_id=current_user.id,
        resource_type="duty", resource_id=duty.id, details={"status": duty.status.value}
    )
    return duty_to_dict(duty, ProfileService.name_lookup(db))


@router.delete("/{duty_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_duty(
    duty_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    duty = _get_visible_duty(db, duty_id, current_user)
    DutyService.delete_duty(db, duty)
    AuditService.log_from_request(
        db=db, request=request, action="duty_delete", user_id=current_user.id,
        resource_type="duty", resource_id=duty_id
    )
