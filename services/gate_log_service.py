"""
Gate assistance log service.
"""
from datetime import date, time
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import GateAssistanceLog
from core.validators import clean_optional, require_value
from core.logger import logger


class GateLogService:
    """CRUD and stats for gate_assistance_logs."""

    @staticmethod
    def list_logs(
        db: Session,
        prefect_id: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[GateAssistanceLog]:
        query = db.query(GateAssistanceLog)
        if prefect_id:
            query = query.filter(GateAssistanceLog.prefect_id == prefect_id)
        if search:
            query = query.filter(GateAssistanceLog.notes.ilike(f"%{search.strip()}%"))
        if date_from:
            query = query.filter(GateAssistanceLog.log_date >= date_from)
        if date_to:
            query = query.filter(GateAssistanceLog.log_date <= date_to)
        return query.order_by(GateAssistanceLog.log_date.desc(), GateAssistanceLog.time_in.desc()).all()

    @staticmethod
    def get_log(db: Session, log_id: str) -> Optional[GateAssistanceLog]:
        return db.query(GateAssistanceLog).filter(GateAssistanceLog.id == log_id).first()

    @staticmethod
    def create_log(
        db: Session,
        prefect_id: Optional[str],
        log_date: Optional[date],
        time_in: Optional[time],
        time_out: Optional[time] = None,
        notes: Optional[str] = None,
    ) -> GateAssistanceLog:
        """
        Record a gate shift.

        Raises:
            ValueError: missing prefect, date or time in; time out before time in
        """
        require_value(prefect_id, "Prefect")
        require_value(log_date, "Log date")
        require_value(time_in, "Time in")
        if time_out is not None and time_out < time_in:
            raise ValueError("Time out cannot be before time in")

        log = GateAssistanceLog(
            prefect_id=prefect_id,
            log_date=log_date,
            time_in=time_in,
            time_out=time_out,
            notes=clean_optional(notes),
        )
        db.add(log)
        db.commit()
        db.refresh(log)
        logger.info(f"Created gate log {log.id} for prefect {prefect_id}")
        return log

    @staticmethod
    def update_log(db: Session, log: GateAssistanceLog, updates: Dict[str, Any]) -> GateAssistanceLog:
        if "prefect_id" in updates:
            log.prefect_id = require_value(updates["prefect_id"], "Prefect")
        if "log_date" in updates:
            log.log_date = require_value(updates["log_date"], "Log date")
        if "time_in" in updates:
            log.time_in = require_value(updates["time_in"], "Time in")
        if "time_out" in updates:
            log.time_out = updates["time_out"]
        if "notes" in updates:
            log.notes = clean_optional(updates["notes"])
        if log.time_out is not None and log.time_out < log.time_in:
            raise ValueError("Time out cannot be before time in")
        db.commit()
        db.refresh(log)
        logger.info(f"Updated gate log {log.id}")
        return log

    @staticmethod
    def delete_log(db: Session, log: GateAssistanceLog) -> None:
        log_id = log.id
        db.delete(log)
        db.commit()
        logger.info(f"Deleted gate log {log_id}")

    @staticmethod
    def get_stats(db: Session, prefect_id: Optional[str] = None) -> Dict[str, int]:
        """Total logs, today's logs, and logs still open (no time out)."""
        base = db.query(func.count(GateAssistanceLog.id))
        if prefect_id:
            base = base.filter(GateAssistanceLog.prefect_id == prefect_id)
        return {
            "total": base.scalar() or 0,
            "today": base.filter(GateAssistanceLog.log_date == date.today()).scalar() or 0,
            "open": base.filter(GateAssistanceLog.time_out.is_(None)).scalar() or 0,
        }
