"""
Audit trail for every change made through the API.
"""
from typing import Optional, Dict, Any, List
from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import Request

from database.models import AuditLog
from core.logger import logger


class AuditService:
    """Writes and reads audit_logs rows."""

    @staticmethod
    def log_action(
        db: Session,
        action: str,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditLog:
        """
        Record one action.

        action is "<resource>_<verb>" (e.g. "duty_create", "application_review");
        details must be JSON serialisable.
        """
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=details
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        logger.debug(f"Audit {action} by {user_id or 'anonymous'} on {resource_type}:{resource_id}")
        return entry

    @staticmethod
    def log_from_request(
        db: Session,
        request: Request,
        action: str,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditLog:
        """Same as log_action, with client IP and user agent taken from the request."""
        return AuditService.log_action(
            db=db,
            action=action,
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            details=details
        )

    @staticmethod
    def _filtered(query, action: Optional[str], user_id: Optional[str], resource_type: Optional[str]):
        if action:
            query = query.filter(AuditLog.action == action)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if resource_type:
            query = query.filter(AuditLog.resource_type == resource_type)
        return query

    @staticmethod
    def list_logs(
        db: Session,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        limit: int = 100
    ) -> List[AuditLog]:
        """Most recent entries first, optionally filtered."""
        query = AuditService._filtered(db.query(AuditLog), action, user_id, resource_type)
        return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    @staticmethod
    def count_logs(
        db: Session,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None
    ) -> int:
        """Number of entries matching the same filters as list_logs, ignoring the limit."""
        query = AuditService._filtered(db.query(func.count(AuditLog.id)), action, user_id, resource_type)
        return query.scalar() or 0
