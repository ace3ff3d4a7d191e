"""
Duty assignment service.
"""
from datetime import date, time
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import DutyAssignment, DutyStatus
from services.prefect_ids import parse_prefect_ids, serialize_prefect_ids, involves_prefect
from core.validators import require_text, update_text, clean_optional, require_value, parse_enum
from core.logger import logger


class DutyService:
    """CRUD and stats for duty_assignments."""

    @staticmethod
    def list_duties(
        db: Session,
        status: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        prefect_id: Optional[str] = None,
    ) -> List[DutyAssignment]:
        """
        Duties, latest date first.

        prefect_id limits to duties naming that prefect, alone or in a group.
        """
        query = db.query(DutyAssignment)
        if status:
            query = query.filter(DutyAssignment.status == parse_enum(DutyStatus, status, "status"))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                DutyAssignment.title.ilike(pattern),
                DutyAssignment.description.ilike(pattern),
                DutyAssignment.location.ilike(pattern),
            ))
        if date_from:
            query = query.filter(DutyAssignment.duty_date >= date_from)
        if date_to:
            query = query.filter(DutyAssignment.duty_date <= date_to)
        if prefect_id:
            # Narrow in SQL, then confirm against the decoded list
            query = query.filter(DutyAssignment.prefect_id.contains(prefect_id))
        duties = query.order_by(DutyAssignment.duty_date.desc(), DutyAssignment.created_at.desc()).all()
        if prefect_id:
            duties = [d for d in duties if involves_prefect(d.prefect_id, prefect_id)]
        return duties

    @staticmethod
    def get_duty(db: Session, duty_id: str) -> Optional[DutyAssignment]:
        return db.query(DutyAssignment).filter(DutyAssignment.id == duty_id).first()

    @staticmethod
    def create_duty(
        db: Session,
        title: Optional[str],
        duty_date: Optional[date],
        prefect_ids: List[str],
        assigned_by: Optional[str] = None,
        description: Optional[str] = None,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        location: Optional[str] = None,
    ) -> DutyAssignment:
        """
        Create a duty for one or more prefects.

        Raises:
            ValueError: missing title, date, or prefects
        """
        title = require_text(title, "Duty title")
        require_value(duty_date, "Duty date")
        duty = DutyAssignment(
            title=title,
            duty_date=duty_date,
            prefect_id=serialize_prefect_ids(prefect_ids or []),
            assigned_by=assigned_by,
            description=clean_optional(description),
            start_time=start_time,
            end_time=end_time,
            location=clean_optional(location),
            status=DutyStatus.ASSIGNED,
        )
        db.add(duty)
        db.commit()
        db.refresh(duty)
        logger.info(f"Created duty {duty.id} '{title}' for {len(parse_prefect_ids(duty.prefect_id))} prefect(s)")
        return duty

    @staticmethod
    def update_duty(db: Session, duty: DutyAssignment, updates: Dict[str, Any]) -> DutyAssignment:
        """Apply a partial update. Keys match create arguments plus status."""
        if "title" in updates and updates["title"] is not None:
            duty.title = update_text(updates["title"], "Duty title")
        if "duty_date" in updates:
            duty.duty_date = require_value(updates["duty_date"], "Duty date")
        if "prefect_ids" in updates and updates["prefect_ids"] is not None:
            duty.prefect_id = serialize_prefect_ids(updates["prefect_ids"])
        if "status" in updates and updates["status"] is not None:
            duty.status = parse_enum(DutyStatus, updates["status"], "status")
        for field in ("description", "location"):
            if field in updates:
                setattr(duty, field, clean_optional(updates[field]))
        for field in ("start_time", "end_time"):
            if field in updates:
                setattr(duty, field, updates[field])
        db.commit()
        db.refresh(duty)
        logger.info(f"Updated duty {duty.id}")
        return duty

    @staticmethod
    def delete_duty(db: Session, duty: DutyAssignment) -> None:
        duty_id = duty.id
        db.delete(duty)
        db.commit()
        logger.info(f"Deleted duty {duty_id}")

    @staticmethod
    def get_stats(db: Session, prefect_id: Optional[str] = None) -> Dict[str, int]:
        """Counts by status, plus today's duties."""
        if prefect_id:
            duties = DutyService.list_duties(db, prefect_id=prefect_id)
            today = date.today()
            return {
                "total": len(duties),
                "assigned": sum(1 for d in duties if d.status == DutyStatus.ASSIGNED),
                "completed": sum(1 for d in duties if d.status == DutyStatus.COMPLETED),
                "missed": sum(1 for d in duties if d.status == DutyStatus.MISSED),
                "today": sum(1 for d in duties if d.duty_date == today),
            }

        rows = db.query(DutyAssignment.status, func.count(DutyAssignment.id)).group_by(DutyAssignment.status).all()
        by_status = {getattr(s, "value", s): c for s, c in rows}
        return {
            "total": sum(by_status.values()),
            "assigned": by_status.get(DutyStatus.ASSIGNED.value, 0),
            "completed": by_status.get(DutyStatus.COMPLETED.value, 0),
            "missed": by_status.get(DutyStatus.MISSED.value, 0),
            "today": db.query(func.count(DutyAssignment.id)).filter(
                DutyAssignment.duty_date == date.today()
            ).scalar() or 0,
        }

    @staticmethod
    def upcoming_for_prefect(db: Session, prefect_id: str, limit: int = 5) -> List[DutyAssignment]:
        """Next duties from today on, soonest first."""
        duties = [
            d for d in DutyService.list_duties(db, prefect_id=prefect_id, date_from=date.today())
            if d.status == DutyStatus.ASSIGNED
        ]
        duties.sort(key=lambda d: (d.duty_date, d.start_time or time.min))
        return duties[:limit]
