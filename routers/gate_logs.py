"""
Gate assistance log APIs.
"""
from datetime import date, time
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, GateAssistanceLog
from auth.dependencies import (
    get_db_session, require_admin, require_prefect_or_admin, require_prefect_or_staff, is_staff, is_admin
)
from services.gate_log_service import GateLogService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import gate_log_to_dict


router = APIRouter(prefix="/api/gate-logs", tags=["gate-logs"])


class GateLogCreate(BaseModel):
    """Create gate log. prefectId is only honoured for admins; prefects log for themselves."""
    prefectId: Optional[str] = None
    logDate: Optional[date] = None
    timeIn: Optional[time] = None
    timeOut: Optional[time] = None
    notes: Optional[str] = None


class GateLogUpdate(BaseModel):
    prefectId: Optional[str] = None
    logDate: Optional[date] = None
    timeIn: Optional[time] = None
    timeOut: Optional[time] = None
    notes: Optional[str] = None


FIELD_MAP = {
    "prefectId": "prefect_id",
    "logDate": "log_date",
    "timeIn": "time_in",
    "timeOut": "time_out",
    "notes": "notes",
}


def _get_visible_log(db: Session, log_id: str, user: User) -> GateAssistanceLog:
    log = GateLogService.get_log(db, log_id)
    if not log or (not is_staff(user) and log.prefect_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gate log not found")
    return log


@router.get("/stats")
async def gate_log_stats(
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    return GateLogService.get_stats(db, prefect_id=None if is_staff(current_user) else current_user.id)


@router.get("")
async def list_gate_logs(
    search: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    prefect_id: Optional[str] = Query(None, alias="prefectId"),
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    """Admins and faculty see every log; prefects their own."""
    if not is_staff(current_user):
        prefect_id = current_user.id
    logs = GateLogService.list_logs(db, prefect_id=prefect_id, search=search, date_from=date_from, date_to=date_to)
    names = ProfileService.name_lookup(db)
    return [gate_log_to_dict(log, names) for log in logs]


@router.get("/{log_id}")
async def get_gate_log(
    log_id: str,
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    return gate_log_to_dict(_get_visible_log(db, log_id, current_user), ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_gate_log(
    data: GateLogCreate,
    request: Request,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    prefect_id = data.prefectId if is_admin(current_user) else current_user.id
    try:
        log = GateLogService.create_log(
            db,
            prefect_id=prefect_id,
            log_date=data.logDate,
            time_in=data.timeIn,
            time_out=data.timeOut,
            notes=data.notes,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="gate_log_create", user_id=current_user.id,
        resource_type="gate_log", resource_id=log.id
    )
    return gate_log_to_dict(log, ProfileService.name_lookup(db))


@router.put("/{log_id}")
async def update_gate_log(
    log_id: str,
    data: GateLogUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    log = _get_visible_log(db, log_id, current_user)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        log = GateLogService.update_log(db, log, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="gate_log_update", user_id=current_user.id,
        resource_type="gate_log", resource_id=log.id, details={"fields": sorted(updates.keys())}
    )
    return gate_log_to_dict(log, ProfileService.name_lookup(db))


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_gate_log(
    log_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    log = _get_visible_log(db, log_id, current_user)
    GateLogService.delete_log(db, log)
    AuditService.log_from_request(
        db=db, request=request, action="gate_log_delete", user_id=current_user.id,
        resource_type="gate_log", resource_id=log_id
    )
