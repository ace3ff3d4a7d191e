"""
Incident report APIs.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, IncidentReport, AppRole
from auth.dependencies import get_db_session, get_current_user, require_admin
from services.incident_service import IncidentService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import incident_to_dict


router = APIRouter(prefix="/api/incidents", tags=["incidents"])


class IncidentCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = None
    location: Optional[str] = None
    incidentDate: Optional[datetime] = None


class IncidentUpdate(IncidentCreate):
    pass


FIELD_MAP = {
    "title": "title",
    "description": "description",
    "severity": "severity",
    "location": "location",
    "incidentDate": "incident_date",
}


def _sees_all_incidents(user: User) -> bool:
    return user.has_role(AppRole.ADMIN.value, AppRole.FACULTY.value, AppRole.PREFECT.value)


def _get_visible_incident(db: Session, incident_id: str, user: User) -> IncidentReport:
    incident = IncidentService.get_incident(db, incident_id)
    if not incident or (not _sees_all_incidents(user) and incident.reported_by != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found")
    return incident


@router.get("/stats")
async def incident_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return IncidentService.get_stats(db, reported_by=None if _sees_all_incidents(current_user) else current_user.id)


@router.get("")
async def list_incidents(
    severity: Optional[str] = Query(None),
    resolved: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Admins, faculty and prefects see every incident; students see their own reports."""
    try:
        incidents = IncidentService.list_incidents(
            db,
            severity=severity,
            resolved=resolved,
            search=search,
            reported_by=None if _sees_all_incidents(current_user) else current_user.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    names = ProfileService.name_lookup(db)
    return [incident_to_dict(i, names) for i in incidents]


@router.get("/{incident_id}")
async def get_incident(
    incident_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    incident = _get_visible_incident(db, incident_id, current_user)
    return incident_to_dict(incident, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_incident(
    data: IncidentCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    try:
        incident = IncidentService.create_incident(
            db,
            reported_by=current_user.id,
            title=data.title,
            description=data.description,
            severity=data.severity,
            location=data.location,
            incident_date=data.incidentDate,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="incident_create", user_id=current_user.id,
        resource_type="incident", resource_id=incident.id, details={"severity": incident.severity.value}
    )
    return incident_to_dict(incident, ProfileService.name_lookup(db))


@router.put("/{incident_id}")
async def update_incident(
    incident_id: str,
    data: IncidentUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    incident = _get_visible_incident(db, incident_id, current_user)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        incident = IncidentService.update_incident(db, incident, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="incident_update", user_id=current_user.id,
        resource_type="incident", resource_id=incident.id, details={"fields": sorted(updates.keys())}
    )
    return incident_to_dict(incident, ProfileService.name_lookup(db))


@router.post("/{incident_id}/resolve")
async def resolve_incident(
    incident_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    incident = _get_visible_incident(db, incident_id, current_user)
    incident = IncidentService.set_resolved(db, incident, True, current_user.id)
    AuditService.log_from_request(
        db=db, request=request, action="incident_resolve", user_id=current_user.id,
        resource_type="incident", resource_id=incident.id
    )
    return incident_to_dict(incident, ProfileService.name_lookup(db))


@router.post("/{incident_id}/reopen")
async def reopen_incident(
    incident_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    incident = _get_visible_incident(db, incident_id, current_user)
    incident = IncidentService.set_resolved(db, incident, False, current_user.id)
    AuditService.log_from_request(
        db=db, request=request, action="incident_reopen", user_id=current_user.id,
        resource_type="incident", resource_id=incident.id
    )
    return incident_to_dict(incident, ProfileService.name_lookup(db))


@router.delete("/{incident_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_incident(
    incident_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    incident = _get_visible_incident(db, incident_id, current_user)
    IncidentService.delete_incident(db, incident)
    AuditService.log_from_request(
        db=db, request=request, action="incident_delete", user_id=current_user.id,
        resource_type="incident", resource_id=incident_id
    )
