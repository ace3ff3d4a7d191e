"""
User management service: listing accounts with their roles and assigning/removing roles.
"""
from typing import Optional, List, Dict, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_, func

from database.models import User, Profile, UserRole, AppRole
from core.validators import parse_enum
from core.logger import logger


class UserService:
    """Admin operations over users and user_roles."""

    @staticmethod
    def list_users(
        db: Session,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[int, List[User]]:
        """
        One page of users with profile and roles loaded, ordered by first name.

        search matches first name, last name, email or student ID.
        role keeps users holding that role.

        Returns:
            (total matching users, users on the requested page)
        """
        query = (
            db.query(User)
            .outerjoin(Profile, Profile.id == User.id)
            .options(selectinload(User.roles), selectinload(User.profile))
        )
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Profile.first_name.ilike(pattern),
                Profile.last_name.ilike(pattern),
                User.email.ilike(pattern),
                Profile.student_id.ilike(pattern),
            ))
        if role:
            role_enum = parse_enum(AppRole, role, "role")
            query = query.filter(User.roles.any(UserRole.role == role_enum))
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        total = query.count()

        query = query.order_by(Profile.first_name.asc(), Profile.last_name.asc())
        if limit:
            query = query.offset((page - 1) * limit).limit(limit)
        return total, query.all()

    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[User]:
        return (
            db.query(User)
            .options(selectinload(User.roles), selectinload(User.profile))
            .filter(User.id == user_id)
            .first()
        )

    @staticmethod
    def assign_role(db: Session, user: User, role: str, assigned_by: Optional[str] = None) -> bool:
        """
        Give user a role. Idempotent.

        Returns:
            True if the role was added, False if the user already held it
        """
        role_enum = parse_enum(AppRole, role, "role")
        existing = db.query(UserRole).filter(UserRole.user_id == user.id, UserRole.role == role_enum).first()
        if existing:
            return False
        db.add(UserRole(user_id=user.id, role=role_enum, assigned_by=assigned_by))
        db.commit()
        db.refresh(user)
        logger.info(f"Assigned role {role_enum.value} to {user.email}")
        return True

    @staticmethod
    def remove_role(db: Session, user: User, role: str) -> bool:
        """
        Take a role away.

        Returns:
            True if a role row was deleted, False if the user did not hold it
        """
        role_enum = parse_enum(AppRole, role, "role")
        existing = db.query(UserRole).filter(UserRole.user_id == user.id, UserRole.role == role_enum).first()
        if not existing:
            return False
        db.delete(existing)
        db.commit()
        db.refresh(user)
        logger.info(f"Removed role {role_enum.value} from {user.email}")
        return True

    @staticmethod
    def set_active(db: Session, user: User, is_active: bool) -> User:
        """Enable or disable an account."""
        user.is_active = is_active
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.email} {'activated' if is_active else 'deactivated'}")
        return user

    @staticmethod
    def count_by_role(db: Session) -> Dict[str, int]:
        """Number of users holding each role, plus total users."""
        rows = db.query(UserRole.role, func.count(UserRole.id)).group_by(UserRole.role).all()
        by_role = {getattr(r, "value", r): c for r, c in rows}
        stats = {"total": db.query(func.count(User.id)).scalar() or 0}
        for role in AppRole:
            stats[role.value] = by_role.get(role.value, 0)
        return stats
