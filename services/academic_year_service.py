"""
Academic year service.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session

from database.models import AcademicYear
from core.validators import require_text, update_text, require_value
from core.logger import logger


class AcademicYearService:
    """CRUD for academic_years. At most one year is current."""

    @staticmethod
    def list_years(db: Session) -> List[AcademicYear]:
        return db.query(AcademicYear).order_by(
            AcademicYear.year_start.desc(), AcademicYear.semester.asc()
        ).all()

    @staticmethod
    def get_year(db: Session, year_id: str) -> Optional[AcademicYear]:
        return db.query(AcademicYear).filter(AcademicYear.id == year_id).first()

    @staticmethod
    def get_current(db: Session) -> Optional[AcademicYear]:
        return db.query(AcademicYear).filter(AcademicYear.is_current == True).first()  # noqa: E712

    @staticmethod
    def _validate_span(year_start: int, year_end: int) -> None:
        if year_start > year_end:
            raise ValueError("Start year must not be after end year")

    @staticmethod
    def _clear_current(db: Session, keep_id: Optional[str] = None) -> None:
        query = db.query(AcademicYear).filter(AcademicYear.is_current == True)  # noqa: E712
        if keep_id:
            query = query.filter(AcademicYear.id != keep_id)
        for year in query.all():
            year.is_current = False

    @staticmethod
    def _check_duplicate(db: Session, year_start: int, year_end: int, semester: str, exclude_id: Optional[str] = None):
        query = db.query(AcademicYear).filter(
            AcademicYear.year_start == year_start,
            AcademicYear.year_end == year_end,
            AcademicYear.semester == semester,
        )
        if exclude_id:
            query = query.filter(AcademicYear.id != exclude_id)
        if query.first():
            raise ValueError("This academic year and semester already exists")

    @staticmethod
    def create_year(
        db: Session,
        year_start: Optional[int],
        year_end: Optional[int],
        semester: Optional[str],
        is_current: bool = False,
    ) -> AcademicYear:
        """
        Raises:
            ValueError: missing fields, start after end, duplicate
        """
        require_value(year_start, "Start year")
        require_value(year_end, "End year")
        semester = require_text(semester, "Semester")
        AcademicYearService._validate_span(year_start, year_end)
        AcademicYearService._check_duplicate(db, year_start, year_end, semester)

        if is_current:
            AcademicYearService._clear_current(db)
        year = AcademicYear(year_start=year_start, year_end=year_end, semester=semester, is_current=is_current)
        db.add(year)
        db.commit()
        db.refresh(year)
        logger.info(f"Created academic year {year.label}")
        return year

    @staticmethod
    def update_year(db: Session, year: AcademicYear, updates: Dict[str, Any]) -> AcademicYear:
        if "year_start" in updates and updates["year_start"] is not None:
            year.year_start = updates["year_start"]
        if "year_end" in updates and updates["year_end"] is not None:
            year.year_end = updates["year_end"]
        if "semester" in updates and updates["semester"] is not None:
            year.semester = update_text(updates["semester"], "Semester")
        AcademicYearService._validate_span(year.year_start, year.year_end)
        AcademicYearService._check_duplicate(db, year.year_start, year.year_end, year.semester, exclude_id=year.id)
        if updates.get("is_current") is True:
            AcademicYearService._clear_current(db, keep_id=year.id)
            year.is_current = True
        elif updates.get("is_current") is False:
            year.is_current = False
        db.commit()
        db.refresh(year)
        logger.info(f"Updated academic year {year.id}")
        return year

    @staticmethod
    def set_current(db: Session, year: AcademicYear) -> AcademicYear:
        AcademicYearService._clear_current(db, keep_id=year.id)
        year.is_current = True
        db.commit()
        db.refresh(year)
        logger.info(f"Academic year {year.label} set as current")
        return year

    @staticmethod
    def delete_year(db: Session, year: AcademicYear) -> None:
        year_id = year.id
        db.delete(year)
        db.commit()
        logger.info(f"Deleted academic year {year_id}")
