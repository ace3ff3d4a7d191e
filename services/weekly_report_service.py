"""
Weekly report service.
"""
from datetime import date
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import WeeklyReport
from core.validators import require_text, update_text, clean_optional, require_value, validate_date_range
from core.logger import logger


class WeeklyReportService:
    """CRUD for weekly_reports."""

    @staticmethod
    def list_reports(
        db: Session,
        prefect_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[WeeklyReport]:
        query = db.query(WeeklyReport)
        if prefect_id:
            query = query.filter(WeeklyReport.prefect_id == prefect_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                WeeklyReport.summary.ilike(pattern),
                WeeklyReport.achievements.ilike(pattern),
                WeeklyReport.challenges.ilike(pattern),
            ))
        return query.order_by(WeeklyReport.week_start.desc(), WeeklyReport.created_at.desc()).all()

    @staticmethod
    def get_report(db: Session, report_id: str) -> Optional[WeeklyReport]:
        return db.query(WeeklyReport).filter(WeeklyReport.id == report_id).first()

    @staticmethod
    def create_report(
        db: Session,
        prefect_id: str,
        week_start: Optional[date],
        week_end: Optional[date],
        summary: Optional[str],
        achievements: Optional[str] = None,
        challenges: Optional[str] = None,
    ) -> WeeklyReport:
        """
        Raises:
            ValueError: missing dates or summary, start not before end
        """
        require_value(week_start, "Week start date")
        require_value(week_end, "Week end date")
        summary = require_text(summary, "Summary")
        validate_date_range(week_start, week_end, "Week start date", "Week end date")

        report = WeeklyReport(
            prefect_id=prefect_id,
            week_start=week_start,
            week_end=week_end,
            summary=summary,
            achievements=clean_optional(achievements),
            challenges=clean_optional(challenges),
        )
        db.add(report)
        db.commit()
        db.refresh(report)
        logger.info(f"Weekly report {report.id} created by {prefect_id} for {week_start}")
        return report

    @staticmethod
    def update_report(db: Session, report: WeeklyReport, updates: Dict[str, Any]) -> WeeklyReport:
        if "week_start" in updates:
            report.week_start = require_value(updates["week_start"], "Week start date")
        if "week_end" in updates:
            report.week_end = require_value(updates["week_end"], "Week end date")
        if "summary" in updates and updates["summary"] is not None:
            report.summary = update_text(updates["summary"], "Summary")
        for field in ("achievements", "challenges"):
            if field in updates:
                setattr(report, field, clean_optional(updates[field]))
        validate_date_range(report.week_start, report.week_end, "Week start date", "Week end date")
        db.commit()
        db.refresh(report)
        logger.info(f"Updated weekly report {report.id}")
        return report

    @staticmethod
    def delete_report(db: Session, report: WeeklyReport) -> None:
        report_id = report.id
        db.delete(report)
        db.commit()
        logger.info(f"Deleted weekly report {report_id}")

    @staticmethod
    def get_stats(db: Session, prefect_id: Optional[str] = None) -> Dict[str, int]:
        query = db.query(func.count(WeeklyReport.id))
        if prefect_id:
            query = query.filter(WeeklyReport.prefect_id == prefect_id)
        authors = db.query(func.count(func.distinct(WeeklyReport.prefect_id)))
        if prefect_id:
            authors = authors.filter(WeeklyReport.prefect_id == prefect_id)
        return {
            "total": query.scalar() or 0,
            "prefects": authors.scalar() or 0,
        }
