"""
Complaint APIs.
Anyone can file a complaint; admins triage it.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, Complaint
from auth.dependencies import get_db_session, get_current_user, require_admin, is_staff
from services.complaint_service import ComplaintService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import complaint_to_dict


router = APIRouter(prefix="/api/complaints", tags=["complaints"])


class ComplaintCreate(BaseModel):
    subject: Optional[str] = None
    description: Optional[str] = None


class ComplaintUpdate(BaseModel):
    subject: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    assignedTo: Optional[str] = None


FIELD_MAP = {
    "subject": "subject",
    "description": "description",
    "status": "status",
    "assignedTo": "assigned_to",
}


def _get_visible_complaint(db: Session, complaint_id: str, user: User) -> Complaint:
    complaint = ComplaintService.get_complaint(db, complaint_id)
    if not complaint or (not is_staff(user) and user.id not in (complaint.submitted_by, complaint.assigned_to)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Complaint not found")
    return complaint


@router.get("/stats")
async def complaint_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return ComplaintService.get_stats(db, visible_to=None if is_staff(current_user) else current_user.id)


@router.get("")
async def list_complaints(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Admins and faculty see every complaint; others see what they filed or were assigned."""
    try:
        complaints = ComplaintService.list_complaints(
            db,
            status=status_filter,
            search=search,
            visible_to=None if is_staff(current_user) else current_user.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    names = ProfileService.name_lookup(db)
    return [complaint_to_dict(c, names) for c in complaints]


@router.get("/{complaint_id}")
async def get_complaint(
    complaint_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    complaint = _get_visible_complaint(db, complaint_id, current_user)
    return complaint_to_dict(complaint, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_complaint(
    data: ComplaintCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    try:
        complaint = ComplaintService.create_complaint(
            db,
            submitted_by=current_user.id,
            subject=data.subject,
            description=data.description,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="complaint_create", user_id=current_user.id,
        resource_type="complaint", resource_id=complaint.id
    )
    return complaint_to_dict(complaint, ProfileService.name_lookup(db))


@router.put("/{complaint_id}")
async def update_complaint(
    complaint_id: str,
    data: ComplaintUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Edit, assign or change the status of a complaint. Admin only."""
    complaint = _get_visible_complaint(db, complaint_id, current_user)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    if updates.get("assigned_to") and not ProfileService.get_profile(db, updates["assigned_to"]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assigned user not found")
    try:
        complaint = ComplaintService.update_complaint(db, complaint, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="complaint_update", user_id=current_user.id,
        resource_type="complaint", resource_id=complaint.id,
        details={"fields": sorted(updates.keys()), "status": complaint.status.value}
    )
    return complaint_to_dict(complaint, ProfileService.name_lookup(db))


@router.delete("/{complaint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_complaint(
    complaint_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    complaint = _get_visible_complaint(db, complaint_id, current_user)
    ComplaintService.delete_complaint(db, complaint)
    AuditService.log_from_request(
        db=db, request=request, action="complaint_delete", user_id=current_user.id,
        resource_type="complaint", resource_id=complaint_id
    )
