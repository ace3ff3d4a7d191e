"""
Incident report service.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import IncidentReport, IncidentSeverity
from core.validators import require_text, update_text, clean_optional, parse_enum
from core.logger import logger


class IncidentService:
    """CRUD, resolve and stats for incident_reports."""

    @staticmethod
    def list_incidents(
        db: Session,
        severity: Optional[str] = None,
        resolved: Optional[bool] = None,
        search: Optional[str] = None,
        reported_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[IncidentReport]:
        query = db.query(IncidentReport)
        if severity:
            query = query.filter(IncidentReport.severity == parse_enum(IncidentSeverity, severity, "severity"))
        if resolved is not None:
            query = query.filter(IncidentReport.is_resolved == resolved)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                IncidentReport.title.ilike(pattern),
                IncidentReport.description.ilike(pattern),
                IncidentReport.location.ilike(pattern),
            ))
        if reported_by:
            query = query.filter(IncidentReport.reported_by == reported_by)
        query = query.order_by(IncidentReport.incident_date.desc(), IncidentReport.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_incident(db: Session, incident_id: str) -> Optional[IncidentReport]:
        return db.query(IncidentReport).filter(IncidentReport.id == incident_id).first()

    @staticmethod
    def create_incident(
        db: Session,
        reported_by: str,
        title: Optional[str],
        description: Optional[str],
        severity: Optional[str] = None,
        location: Optional[str] = None,
        incident_date: Optional[datetime] = None,
    ) -> IncidentReport:
        """
        Raises:
            ValueError: missing title/description, unknown severity
        """
        title = require_text(title, "Title")
        description = require_text(description, "Description")
        incident = IncidentReport(
            reported_by=reported_by,
            title=title,
            description=description,
            severity=parse_enum(IncidentSeverity, severity, "severity") if severity else IncidentSeverity.LOW,
            location=clean_optional(location),
            incident_date=incident_date or datetime.utcnow(),
            is_resolved=False,
        )
        db.add(incident)
        db.commit()
        db.refresh(incident)
        logger.info(f"Incident {incident.id} reported by {reported_by} ({incident.severity.value})")
        return incident

    @staticmethod
    def update_incident(db: Session, incident: IncidentReport, updates: Dict[str, Any]) -> IncidentReport:
        if "title" in updates and updates["title"] is not None:
            incident.title = update_text(updates["title"], "Title")
        if "description" in updates and updates["description"] is not None:
            incident.description = update_text(updates["description"], "Description")
        if "severity" in updates and updates["severity"] is not None:
            incident.severity = parse_enum(IncidentSeverity, updates["severity"], "severity")
        if "location" in updates:
            incident.location = clean_optional(updates["location"])
        if "incident_date" in updates and updates["incident_date"] is not None:
            incident.incident_date = updates["incident_date"]
        db.commit()
        db.refresh(incident)
        logger.info(f"Updated incident {incident.id}")
        return incident

    @staticmethod
    def set_resolved(db: Session, incident: IncidentReport, resolved: bool, actor_id: str) -> IncidentReport:
        """Resolve (stamping who and when) or reopen an incident."""
        incident.is_resolved = resolved
        incident.resolved_by = actor_id if resolved else None
        incident.resolved_at = datetime.utcnow() if resolved else None
        db.commit()
        db.refresh(incident)
        logger.info(f"Incident {incident.id} {'resolved' if resolved else 'reopened'} by {actor_id}")
        return incident

    @staticmethod
    def delete_incident(db: Session, incident: IncidentReport) -> None:
        incident_id = incident.id
        db.delete(incident)
        db.commit()
        logger.info(f"Deleted incident {incident_id}")

    @staticmethod
    def get_stats(db: Session, reported_by: Optional[str] = None) -> Dict[str, int]:
        """Totals, open/resolved, per-severity counts, and open critical incidents."""
        def count(*criteria):
            query = db.query(func.count(IncidentReport.id))
            if reported_by:
                query = query.filter(IncidentReport.reported_by == reported_by)
            return query.filter(*criteria).scalar() or 0

        stats = {
            "total": count(),
            "open": count(IncidentReport.is_resolved == False),  # noqa: E712
            "resolved": count(IncidentReport.is_resolved == True),  # noqa: E712
            "criticalOpen": count(
                IncidentReport.severity == IncidentSeverity.CRITICAL,
                IncidentReport.is_resolved == False,  # noqa: E712
            ),
        }
        for severity in IncidentSeverity:
            stats[severity.value] = count(IncidentReport.severity == severity)
        return stats
