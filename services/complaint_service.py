"""
Complaint service.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import Complaint, ComplaintStatus
from core.validators import require_text, update_text, parse_enum
from core.logger import logger


class ComplaintService:
    """CRUD and status stats for complaints."""

    @staticmethod
    def list_complaints(
        db: Session,
        status: Optional[str] = None,
        search: Optional[str] = None,
        submitted_by: Optional[str] = None,
        visible_to: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Complaint]:
        """
        Complaints, newest first.

        visible_to restricts to rows the user submitted or is assigned to.
        """
        query = db.query(Complaint)
        if status:
            query = query.filter(Complaint.status == parse_enum(ComplaintStatus, status, "status"))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Complaint.subject.ilike(pattern), Complaint.description.ilike(pattern)))
        if submitted_by:
            query = query.filter(Complaint.submitted_by == submitted_by)
        if visible_to:
            query = query.filter(or_(Complaint.submitted_by == visible_to, Complaint.assigned_to == visible_to))
        query = query.order_by(Complaint.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_complaint(db: Session, complaint_id: str) -> Optional[Complaint]:
        return db.query(Complaint).filter(Complaint.id == complaint_id).first()

    @staticmethod
    def create_complaint(
        db: Session,
        submitted_by: str,
        subject: Optional[str],
        description: Optional[str],
    ) -> Complaint:
        """
        New complaints start as pending.

        Raises:
            ValueError: missing subject or description
        """
        subject = require_text(subject, "Subject")
        description = require_text(description, "Description")
        complaint = Complaint(
            submitted_by=submitted_by,
            subject=subject,
            description=description,
            status=ComplaintStatus.PENDING,
        )
        db.add(complaint)
        db.commit()
        db.refresh(complaint)
        logger.info(f"Complaint {complaint.id} submitted by {submitted_by}")
        return complaint

    @staticmethod
    def update_complaint(db: Session, complaint: Complaint, updates: Dict[str, Any]) -> Complaint:
        """
        Partial update. Moving to resolved stamps resolved_at; leaving resolved clears it.
        """
        if "subject" in updates and updates["subject"] is not None:
            complaint.subject = update_text(updates["subject"], "Subject")
        if "description" in updates and updates["description"] is not None:
            complaint.description = update_text(updates["description"], "Description")
        if "assigned_to" in updates:
            complaint.assigned_to = updates["assigned_to"] or None
        if "status" in updates and updates["status"] is not None:
            new_status = parse_enum(ComplaintStatus, updates["status"], "status")
            if new_status == ComplaintStatus.RESOLVED and complaint.status != ComplaintStatus.RESOLVED:
                complaint.resolved_at = datetime.utcnow()
            elif new_status != ComplaintStatus.RESOLVED:
                complaint.resolved_at = None
            complaint.status = new_status
        db.commit()
        db.refresh(complaint)
        logger.info(f"Updated complaint {complaint.id} (status: {complaint.status.value})")
        return complaint

    @staticmethod
    def delete_complaint(db: Session, complaint: Complaint) -> None:
        complaint_id = complaint.id
        db.delete(complaint)
        db.commit()
        logger.info(f"Deleted complaint {complaint_id}")

    @staticmethod
    def get_stats(db: Session, visible_to: Optional[str] = None) -> Dict[str, int]:
        """Counts per status."""
        query = db.query(Complaint.status, func.count(Complaint.id))
        if visible_to:
            query = query.filter(or_(Complaint.submitted_by == visible_to, Complaint.assigned_to == visible_to))
        by_status = {getattr(s, "value", s): c for s, c in query.group_by(Complaint.status).all()}
        stats = {"total": sum(by_status.values())}
        for status in ComplaintStatus:
            key = "inProgress" if status == ComplaintStatus.IN_PROGRESS else status.value
            stats[key] = by_status.get(status.value, 0)
        return stats
