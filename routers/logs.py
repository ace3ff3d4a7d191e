"""
Audit log APIs (admin).
"""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
import csv
import io

from database.models import User
from auth.dependencies import get_db_session, require_admin
from services.audit_service import AuditService
from core.serializers import audit_log_to_dict


router = APIRouter(prefix="/api/audit-logs", tags=["audit-logs"])


@router.get("")
async def list_audit_logs(
    action: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """
    Most recent audit entries.
    Admin only.
    """
    logs = AuditService.list_logs(db, action=action, user_id=user_id, resource_type=resource_type, limit=limit)
    total = AuditService.count_logs(db, action=action, user_id=user_id, resource_type=resource_type)
    return {"data": [audit_log_to_dict(log) for log in logs], "total": total}


@router.get("/export")
async def export_audit_logs(
    action: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    limit: int = Query(1000, ge=1, le=10000),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Export audit entries as CSV. Admin only."""
    logs = AuditService.list_logs(db, action=action, user_id=user_id, resource_type=resource_type, limit=limit)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["id", "timestamp", "userId", "action", "resourceType", "resourceId", "ip", "details"])
    for log in logs:
        writer.writerow([
            log.id,
            log.created_at.isoformat() if log.created_at else "",
            log.user_id or "",
            log.action,
            log.resource_type or "",
            log.resource_id or "",
            log.ip_address or "",
            str(log.details) if log.details else ""
        ])
    csv_content = output.getvalue()
    output.close()

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=audit_logs_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
        }
    )
