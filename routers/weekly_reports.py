"""
Weekly report APIs. Prefects file their own reports; staff read all.
"""
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, WeeklyReport
from auth.dependencies import (
    get_db_session, require_prefect_or_admin, require_prefect_or_staff, is_staff, is_admin
)
from services.weekly_report_service import WeeklyReportService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import weekly_report_to_dict


router = APIRouter(prefix="/api/weekly-reports", tags=["weekly-reports"])


class WeeklyReportCreate(BaseModel):
    prefectId: Optional[str] = None
    weekStart: Optional[date] = None
    weekEnd: Optional[date] = None
    summary: Optional[str] = None
    achievements: Optional[str] = None
    challenges: Optional[str] = None


class WeeklyReportUpdate(BaseModel):
    weekStart: Optional[date] = None
    weekEnd: Optional[date] = None
    summary: Optional[str] = None
    achievements: Optional[str] = None
    challenges: Optional[str] = None


FIELD_MAP = {
    "weekStart": "week_start",
    "weekEnd": "week_end",
    "summary": "summary",
    "achievements": "achievements",
    "challenges": "challenges",
}


def _get_visible_report(db: Session, report_id: str, user: User) -> WeeklyReport:
    report = WeeklyReportService.get_report(db, report_id)
    if not report or (not is_staff(user) and report.prefect_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Weekly report not found")
    return report


def _require_owner_or_admin(user: User, report: WeeklyReport) -> None:
    if not is_admin(user) and report.prefect_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only change your own reports")


@router.get("/stats")
async def weekly_report_stats(
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    return WeeklyReportService.get_stats(db, prefect_id=None if is_staff(current_user) else current_user.id)


@router.get("")
async def list_weekly_reports(
    prefect_id: Optional[str] = Query(None, alias="prefectId"),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    if not is_staff(current_user):
        prefect_id = current_user.id
    reports = WeeklyReportService.list_reports(db, prefect_id=prefect_id, search=search)
    names = ProfileService.name_lookup(db)
    return [weekly_report_to_dict(r, names) for r in reports]


@router.get("/{report_id}")
async def get_weekly_report(
    report_id: str,
    current_user: User = Depends(require_prefect_or_staff),
    db: Session = Depends(get_db_session)
):
    report = _get_visible_report(db, report_id, current_user)
    return weekly_report_to_dict(report, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_weekly_report(
    data: WeeklyReportCreate,
    request: Request,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    """Prefects report for themselves; admins may file for any prefect."""
    prefect_id = (data.prefectId or current_user.id) if is_admin(current_user) else current_user.id
    try:
        report = WeeklyReportService.create_report(
            db,
            prefect_id=prefect_id,
            week_start=data.weekStart,
            week_end=data.weekEnd,
            summary=data.summary,
            achievements=data.achievements,
            challenges=data.challenges,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="weekly_report_create", user_id=current_user.id,
        resource_type="weekly_report", resource_id=report.id
    )
    return weekly_report_to_dict(report, ProfileService.name_lookup(db))


@router.put("/{report_id}")
async def update_weekly_report(
    report_id: str,
    data: WeeklyReportUpdate,
    request: Request,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    report = _get_visible_report(db, report_id, current_user)
    _require_owner_or_admin(current_user, report)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        report = WeeklyReportService.update_report(db, report, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="weekly_report_update", user_id=current_user.id,
        resource_type="weekly_report", resource_id=report.id, details={"fields": sorted(updates.keys())}
    )
    return weekly_report_to_dict(report, ProfileService.name_lookup(db))


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_weekly_report(
    report_id: str,
    request: Request,
    current_user: User = Depends(require_prefect_or_admin),
    db: Session = Depends(get_db_session)
):
    report = _get_visible_report(db, report_id, current_user)
    _require_owner_or_admin(current_user, report)
    WeeklyReportService.delete_report(db, report)
    AuditService.log_from_request(
        db=db, request=request, action="weekly_report_delete", user_id=current_user.id,
        resource_type="weekly_report", resource_id=report_id
    )
