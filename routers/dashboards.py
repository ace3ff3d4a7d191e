"""
Dashboard APIs for all roles.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.models import User, AppRole
from auth.dependencies import get_db_session, get_current_user, require_role, require_admin, require_staff
from services.dashboard_service import DashboardService


router = APIRouter(prefix="/api/dashboard", tags=["dashboards"])


@router.get("")
async def my_dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """
    Dashboard for the caller's primary role
    (admin > faculty > prefect > student).
    """
    return DashboardService.for_user(db, current_user)


@router.get("/admin")
async def admin_dashboard(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Admin dashboard stats. Admin only."""
    return DashboardService.admin_dashboard(db)


@router.get("/faculty")
async def faculty_dashboard(
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    """Faculty dashboard stats. Faculty and admin."""
    return DashboardService.faculty_dashboard(db)


@router.get("/prefect")
async def prefect_dashboard(
    current_user: User = Depends(require_role([AppRole.PREFECT.value])),
    db: Session = Depends(get_db_session)
):
    """The caller's own prefect dashboard. Prefects only."""
    return DashboardService.prefect_dashboard(db, current_user)


@router.get("/student")
async def student_dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """The caller's own student dashboard."""
    return DashboardService.student_dashboard(db, current_user)
