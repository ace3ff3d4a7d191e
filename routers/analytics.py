"""
Analytics APIs (admin and faculty).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.models import User
from auth.dependencies import get_db_session, require_staff
from services.analytics_service import AnalyticsService


router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/system")
async def system_stats(
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    """User/role counts, entity totals and status breakdowns."""
    return AnalyticsService.system_stats(db)


@router.get("/top-performers")
async def top_performers(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    return AnalyticsService.top_performers(db, limit=limit)


@router.get("/prefect-activity")
async def prefect_activity(
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    """Per-prefect duty, gate log, attendance, report and evaluation counts."""
    return AnalyticsService.prefect_activity(db)


@router.get("/critical-issues")
async def critical_issues(
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    return AnalyticsService.critical_issues(db)
