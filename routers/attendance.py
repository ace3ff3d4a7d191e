"""
Prefect attendance APIs: clock in/out, records and stats.
"""
from datetime import date, time
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Optional

from database.models import User, Attendance
from auth.dependencies import (
    get_db_session, require_admin, require_prefect_or_admin, require_prefect_or_staff, is_staff, is_admin
)
from services.attendance_service import AttendanceService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import attendance_to_dict


router = APIRouter(prefix="/api/attendance", tags=["attendance"])


class AttendanceCreate(BaseModel):
    prefectId: Optional[str] = None
    day: Optional[date] = Field(None, alias="date")
    status: Optional[str] = None
    timeIn: Optional[time] = None
    timeOut: Optional[time] = None
    notes: Optional[str] = None


class AttendanceUpdate(BaseModel):
    status: Optional[str] = None
    timeIn: Optional[time] = None
    timeOut: Optional[time] = None
    notes: Optional[str] = None


class ClockInRequest(BaseModel):
    status: Optional[str] = None


FIELD_MAP = {
    "status": "status",
    "timeIn": "time_in",
    "timeOut": "time_out",
    "notes": "notes",
}


def _get_visible_record(db: Session, record_id: str, user: User) -> Attendance:
    record = AttendanceService.get_record(db, record_id)
    if not record or (not is_staff(user) and record.prefect_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")
    return record


@router.get("/stats")
async def attendance_stats(
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    return AttendanceService.get_stats(db, prefect_id=None if is_staff(current_user) else current_user.id)


@router.get("")
async def list_attendance(
    prefect_id: Optional[str] = Query(None, alias="prefectId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    if not is_staff(current_user):
        prefect_id = current_user.id
    try:
        records = AttendanceService.list_records(
            db, prefect_id=prefect_id, status=status_filter, date_from=date_from, date_to=date_to
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    names = ProfileService.name_lookup(db)
    return [attendance_to_dict(r, names) for r in records]


@router.get("/{record_id}")
async def get_attendance(
    record_id: str,
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    record = _get_visible_record(db, record_id, current_user)
    return attendance_to_dict(record, ProfileService.name_lookup(db))


@router.post("/clock-in", status_code=status.HTTP_201_CREATED)
async def clock_in(
    request: Request,
    data: Optional[ClockInRequest] = None,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    """Create today's attendance record for the caller."""
    try:
        record = AttendanceService.clock_in(db, current_user.id, status=data.status if data else None)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="attendance_clock_in", user_id=current_user.id,
        resource_type="attendance", resource_id=record.id
    )
    return attendance_to_dict(record, ProfileService.name_lookup(db))


@router.post("/clock-out")
async def clock_out(
    request: Request,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    try:
        record = AttendanceService.clock_out(db, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="attendance_clock_out", user_id=current_user.id,
        resource_type="attendance", resource_id=record.id
    )
    return attendance_to_dict(record, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_attendance(
    data: AttendanceCreate,
    request: Request,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    """Record attendance. Prefects record their own; admins may record for any prefect."""
    prefect_id = (data.prefectId or current_user.id) if is_admin(current_user) else current_user.id
    try:
        record = AttendanceService.create_record(
            db,
            prefect_id=prefect_id,
            day=data.day,
            status=data.status,
            time_in=data.timeIn,
            time_out=data.timeOut,
            notes=data.notes,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="attendance_create", user_id=current_user.id,
        resource_type="attendance", resource_id=record.id
    )
    return attendance_to_dict(record, ProfileService.name_lookup(db))


@router.put("/{record_id}")
async def update_attendance(
    record_id: str,
    data: AttendanceUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    record = _get_visible_record(db, record_id, current_user)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        record = AttendanceService.update_record(db, record, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="attendance_update", user_id=current_user.id,
        resource_type="attendance", resource_id=record.id, details={"fields": sorted(updates.keys())}
    )
    return attendance_to_dict(record, ProfileService.name_lookup(db))


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    record_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    record = _get_visible_record(db, record_id, current_user)
    AttendanceService.delete_record(db, record)
    AuditService.log_from_request(
        db=db, request=request, action="attendance_delete", user_id=current_user.id,
        resource_type="attendance", resource_id=record_id
    )
