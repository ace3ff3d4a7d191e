"""
Profile service.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import Profile, UserRole, AppRole
from core.validators import update_text, clean_optional
from core.logger import logger


class ProfileService:
    """Read and update profiles; prefect lookup lists."""

    @staticmethod
    def get_profile(db: Session, user_id: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == user_id).first()

    @staticmethod
    def list_profiles(db: Session, search: Optional[str] = None) -> List[Profile]:
        query = db.query(Profile)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Profile.first_name.ilike(pattern),
                Profile.last_name.ilike(pattern),
                Profile.email.ilike(pattern),
            ))
        return query.order_by(Profile.first_name.asc(), Profile.last_name.asc()).all()

    @staticmethod
    def list_prefects(db: Session) -> List[Profile]:
        """Profiles of users holding the prefect role."""
        return (
            db.query(Profile)
            .join(UserRole, UserRole.user_id == Profile.id)
            .filter(UserRole.role == AppRole.PREFECT)
            .order_by(Profile.first_name.asc(), Profile.last_name.asc())
            .all()
        )

    @staticmethod
    def name_lookup(db: Session) -> Dict[str, str]:
        """user id -> "First Last" for every profile."""
        return {p.id: p.full_name for p in db.query(Profile).all()}

    @staticmethod
    def update_profile(db: Session, profile: Profile, updates: Dict[str, Any]) -> Profile:
        """
        Partial update of personal details. Email and id are not editable here.

        Raises:
            ValueError: blank name, year level out of range, duplicate student ID
        """
        if "first_name" in updates and updates["first_name"] is not None:
            profile.first_name = update_text(updates["first_name"], "First name")
        if "last_name" in updates and updates["last_name"] is not None:
            profile.last_name = update_text(updates["last_name"], "Last name")
        if "student_id" in updates:
            student_id = clean_optional(updates["student_id"])
            if student_id and db.query(Profile).filter(
                Profile.student_id == student_id, Profile.id != profile.id
            ).first():
                raise ValueError("Student ID is already in use")
            profile.student_id = student_id
        if "year_level" in updates:
            year_level = updates["year_level"]
            if year_level is not None and not 1 <= year_level <= 12:
                raise ValueError("Year level must be between 1 and 12")
            profile.year_level = year_level
        for field in ("phone", "department", "section", "avatar_url"):
            if field in updates:
                setattr(profile, field, clean_optional(updates[field]))
        db.commit()
        db.refresh(profile)
        logger.info(f"Updated profile {profile.id}")
        return profile
