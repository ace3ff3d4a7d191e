"""
Prefect attendance service.
"""
from datetime import date, time, datetime
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import Attendance, AttendanceStatus
from core.validators import clean_optional, require_value, parse_enum
from core.logger import logger


class AttendanceService:
    """CRUD, clock in/out and stats for attendance. One row per prefect per day."""

    @staticmethod
    def list_records(
        db: Session,
        prefect_id: Optional[str] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Attendance]:
        query = db.query(Attendance)
        if prefect_id:
            query = query.filter(Attendance.prefect_id == prefect_id)
        if status:
            query = query.filter(Attendance.status == parse_enum(AttendanceStatus, status, "status"))
        if date_from:
            query = query.filter(Attendance.date >= date_from)
        if date_to:
            query = query.filter(Attendance.date <= date_to)
        return query.order_by(Attendance.date.desc(), Attendance.created_at.desc()).all()

    @staticmethod
    def get_record(db: Session, record_id: str) -> Optional[Attendance]:
        return db.query(Attendance).filter(Attendance.id == record_id).first()

    @staticmethod
    def get_for_day(db: Session, prefect_id: str, day: date) -> Optional[Attendance]:
        return db.query(Attendance).filter(Attendance.prefect_id == prefect_id, Attendance.date == day).first()

    @staticmethod
    def create_record(
        db: Session,
        prefect_id: Optional[str],
        day: Optional[date],
        status: Optional[str] = None,
        time_in: Optional[time] = None,
        time_out: Optional[time] = None,
        notes: Optional[str] = None,
    ) -> Attendance:
        """
        Raises:
            ValueError: missing prefect/date, duplicate day, bad status
        """
        require_value(prefect_id, "Prefect")
        require_value(day, "Date")
        if AttendanceService.get_for_day(db, prefect_id, day):
            raise ValueError("Attendance record already exists for this date")
        record = Attendance(
            prefect_id=prefect_id,
            date=day,
            status=parse_enum(AttendanceStatus, status, "status") if status else AttendanceStatus.PRESENT,
            time_in=time_in,
            time_out=time_out,
            notes=clean_optional(notes),
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        logger.info(f"Attendance {record.id} recorded for {prefect_id} on {day} ({record.status.value})")
        return record

    @staticmethod
    def clock_in(db: Session, prefect_id: str, status: Optional[str] = None) -> Attendance:
        """Create today's record stamped with the current time."""
        now = datetime.now()
        return AttendanceService.create_record(
            db, prefect_id, now.date(), status=status, time_in=now.time().replace(microsecond=0)
        )

    @staticmethod
    def clock_out(db: Session, prefect_id: str) -> Attendance:
        """
        Stamp time out on today's record.

        Raises:
            ValueError: no record today, or already clocked out
        """
        now = datetime.now()
        record = AttendanceService.get_for_day(db, prefect_id, now.date())
        if not record:
            raise ValueError("No attendance record for today")
        if record.time_out is not None:
            raise ValueError("Time out already logged for today")
        record.time_out = now.time().replace(microsecond=0)
        db.commit()
        db.refresh(record)
        logger.info(f"Attendance {record.id} time out logged")
        return record

    @staticmethod
    def update_record(db: Session, record: Attendance, updates: Dict[str, Any]) -> Attendance:
        if "status" in updates and updates["status"] is not None:
            record.status = parse_enum(AttendanceStatus, updates["status"], "status")
        for field in ("time_in", "time_out"):
            if field in updates:
                setattr(record, field, updates[field])
        if "notes" in updates:
            record.notes = clean_optional(updates["notes"])
        db.commit()
        db.refresh(record)
        logger.info(f"Updated attendance {record.id}")
        return record

    @staticmethod
    def delete_record(db: Session, record: Attendance) -> None:
        record_id = record.id
        db.delete(record)
        db.commit()
        logger.info(f"Deleted attendance {record_id}")

    @staticmethod
    def get_stats(db: Session, prefect_id: Optional[str] = None) -> Dict[str, int]:
        query = db.query(Attendance.status, func.count(Attendance.id))
        if prefect_id:
            query = query.filter(Attendance.prefect_id == prefect_id)
        by_status = {getattr(s, "value", s): c for s, c in query.group_by(Attendance.status).all()}
        stats = {"total": sum(by_status.values())}
        for status in AttendanceStatus:
            stats[status.value] = by_status.get(status.value, 0)
        return stats
