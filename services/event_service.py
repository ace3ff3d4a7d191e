"""
Event service.
"""
from datetime import date, time
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import Event
from core.validators import require_text, update_text, clean_optional, require_value
from core.logger import logger


class EventService:
    """CRUD for events. Everyone reads, admins write."""

    @staticmethod
    def list_events(
        db: Session,
        search: Optional[str] = None,
        upcoming: bool = False,
        limit: Optional[int] = None,
    ) -> List[Event]:
        """
        Events, latest first. With upcoming=True only today onward, soonest first.
        """
        query = db.query(Event)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Event.title.ilike(pattern),
                Event.description.ilike(pattern),
                Event.location.ilike(pattern),
            ))
        if upcoming:
            query = query.filter(Event.event_date >= date.today()).order_by(
                Event.event_date.asc(), Event.start_time.asc()
            )
        else:
            query = query.order_by(Event.event_date.desc(), Event.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_event(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def create_event(
        db: Session,
        title: Optional[str],
        event_date: Optional[date],
        created_by: Optional[str] = None,
        description: Optional[str] = None,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        location: Optional[str] = None,
    ) -> Event:
        """
        Raises:
            ValueError: missing title or date
        """
        title = require_text(title, "Event title")
        require_value(event_date, "Event date")
        event = Event(
            title=title,
            event_date=event_date,
            created_by=created_by,
            description=clean_optional(description),
            start_time=start_time,
            end_time=end_time,
            location=clean_optional(location),
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(f"Created event {event.id} '{title}' on {event_date}")
        return event

    @staticmethod
    def update_event(db: Session, event: Event, updates: Dict[str, Any]) -> Event:
        if "title" in updates and updates["title"] is not None:
            event.title = update_text(updates["title"], "Event title")
        if "event_date" in updates:
            event.event_date = require_value(updates["event_date"], "Event date")
        for field in ("description", "location"):
            if field in updates:
                setattr(event, field, clean_optional(updates[field]))
        for field in ("start_time", "end_time"):
            if field in updates:
                setattr(event, field, updates[field])
        db.commit()
        db.refresh(event)
        logger.info(f"Updated event {event.id}")
        return event

    @staticmethod
    def delete_event(db: Session, event: Event) -> None:
        event_id = event.id
        db.delete(event)
        db.commit()
        logger.info(f"Deleted event {event_id}")

    @staticmethod
    def get_stats(db: Session) -> Dict[str, int]:
        today = date.today()
        return {
            "total": db.query(func.count(Event.id)).scalar() or 0,
            "upcoming": db.query(func.count(Event.id)).filter(Event.event_date >= today).scalar() or 0,
            "past": db.query(func.count(Event.id)).filter(Event.event_date < today).scalar() or 0,
        }
