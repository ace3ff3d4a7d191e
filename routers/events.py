"""
Event APIs. Everyone can read; admins manage.
"""
from datetime import date, time
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, Event
from auth.dependencies import get_db_session, get_current_user, require_admin
from services.event_service import EventService
from services.audit_service import AuditService
from core.serializers import event_to_dict


router = APIRouter(prefix="/api/events", tags=["events"])


class EventCreate(BaseModel):
    title: Optional[str] = None
    eventDate: Optional[date] = None
    description: Optional[str] = None
    startTime: Optional[time] = None
    endTime: Optional[time] = None
    location: Optional[str] = None


class EventUpdate(EventCreate):
    pass


FIELD_MAP = {
    "title": "title",
    "eventDate": "event_date",
    "description": "description",
    "startTime": "start_time",
    "endTime": "end_time",
    "location": "location",
}


def _get_event_or_404(db: Session, event_id: str) -> Event:
    event = EventService.get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.get("/stats")
async def event_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return EventService.get_stats(db)


@router.get("")
async def list_events(
    search: Optional[str] = Query(None),
    upcoming: bool = Query(False, description="Only events from today on"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return [event_to_dict(e) for e in EventService.list_events(db, search=search, upcoming=upcoming)]


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return event_to_dict(_get_event_or_404(db, event_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    try:
        event = EventService.create_event(
            db,
            title=data.title,
            event_date=data.eventDate,
            created_by=current_user.id,
            description=data.description,
            start_time=data.startTime,
            end_time=data.endTime,
            location=data.location,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="event_create", user_id=current_user.id,
        resource_type="event", resource_id=event.id
    )
    return event_to_dict(event)


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    data: EventUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    event = _get_event_or_404(db, event_id)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        event = EventService.update_event(db, event, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="event_update", user_id=current_user.id,
        resource_type="event", resource_id=event.id, details={"fields": sorted(updates.keys())}
    )
    return event_to_dict(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    event = _get_event_or_404(db, event_id)
    EventService.delete_event(db, event)
    AuditService.log_from_request(
        db=db, request=request, action="event_delete", user_id=current_user.id,
        resource_type="event", resource_id=event_id
    )
