"""
Academic year APIs.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, AcademicYear
from auth.dependencies import get_db_session, get_current_user, require_admin
from services.academic_year_service import AcademicYearService
from services.audit_service import AuditService
from core.serializers import academic_year_to_dict


router = APIRouter(prefix="/api/academic-years", tags=["academic-years"])


class AcademicYearCreate(BaseModel):
    yearStart: Optional[int] = None
    yearEnd: Optional[int] = None
    semester: Optional[str] = None
    isCurrent: bool = False


class AcademicYearUpdate(BaseModel):
    yearStart: Optional[int] = None
    yearEnd: Optional[int] = None
    semester: Optional[str] = None
    isCurrent: Optional[bool] = None


FIELD_MAP = {
    "yearStart": "year_start",
    "yearEnd": "year_end",
    "semester": "semester",
    "isCurrent": "is_current",
}


def _get_year_or_404(db: Session, year_id: str) -> AcademicYear:
    year = AcademicYearService.get_year(db, year_id)
    if not year:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
    return year


@router.get("")
async def list_academic_years(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return [academic_year_to_dict(y) for y in AcademicYearService.list_years(db)]


@router.get("/current")
async def current_academic_year(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    year = AcademicYearService.get_current(db)
    if not year:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No current academic year set")
    return academic_year_to_dict(year)


@router.get("/{year_id}")
async def get_academic_year(
    year_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return academic_year_to_dict(_get_year_or_404(db, year_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_academic_year(
    data: AcademicYearCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    try:
        year = AcademicYearService.create_year(
            db,
            year_start=data.yearStart,
            year_end=data.yearEnd,
            semester=data.semester,
            is_current=data.isCurrent,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="academic_year_create", user_id=current_user.id,
        resource_type="academic_year", resource_id=year.id, details={"label": year.label}
    )
    return academic_year_to_dict(year)


@router.put("/{year_id}")
async def update_academic_year(
    year_id: str,
    data: AcademicYearUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    year = _get_year_or_404(db, year_id)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        year = AcademicYearService.update_year(db, year, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="academic_year_update", user_id=current_user.id,
        resource_type="academic_year", resource_id=year.id, details={"fields": sorted(updates.keys())}
    )
    return academic_year_to_dict(year)


@router.post("/{year_id}/set-current")
async def set_current_academic_year(
    year_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Mark one academic year as current; every other year is unset."""
    year = AcademicYearService.set_current(db, _get_year_or_404(db, year_id))
    AuditService.log_from_request(
        db=db, request=request, action="academic_year_set_current", user_id=current_user.id,
        resource_type="academic_year", resource_id=year.id
    )
    return academic_year_to_dict(year)


@router.delete("/{year_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_academic_year(
    year_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    year = _get_year_or_404(db, year_id)
    AcademicYearService.delete_year(db, year)
    AuditService.log_from_request(
        db=db, request=request, action="academic_year_delete", user_id=current_user.id,
        resource_type="academic_year", resource_id=year_id
    )
