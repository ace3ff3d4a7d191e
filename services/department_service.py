"""
Department reference data service.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import Department
from core.validators import require_text, update_text, clean_optional
from core.logger import logger


class DepartmentService:
    """CRUD for departments. Names and codes are unique (case-insensitive)."""

    @staticmethod
    def list_departments(db: Session) -> List[Department]:
        return db.query(Department).order_by(Department.name.asc()).all()

    @staticmethod
    def get_department(db: Session, department_id: str) -> Optional[Department]:
        return db.query(Department).filter(Department.id == department_id).first()

    @staticmethod
    def _check_unique(db: Session, name: str, code: str, exclude_id: Optional[str] = None) -> None:
        query = db.query(Department)
        if exclude_id:
            query = query.filter(Department.id != exclude_id)
        if query.filter(func.lower(Department.name) == name.lower()).first():
            raise ValueError("A department with this name already exists")
        if query.filter(func.lower(Department.code) == code.lower()).first():
            raise ValueError("A department with this code already exists")

    @staticmethod
    def create_department(
        db: Session, name: Optional[str], code: Optional[str], description: Optional[str] = None
    ) -> Department:
        """
        Raises:
            ValueError: missing name/code, duplicate name or code
        """
        name = require_text(name, "Department name")
        code = require_text(code, "Department code").upper()
        DepartmentService._check_unique(db, name, code)
        department = Department(name=name, code=code, description=clean_optional(description))
        db.add(department)
        db.commit()
        db.refresh(department)
        logger.info(f"Created department {code} '{name}'")
        return department

    @staticmethod
    def update_department(db: Session, department: Department, updates: Dict[str, Any]) -> Department:
        name = department.name
        code = department.code
        if "name" in updates and updates["name"] is not None:
            name = update_text(updates["name"], "Department name")
        if "code" in updates and updates["code"] is not None:
            code = update_text(updates["code"], "Department code").upper()
        DepartmentService._check_unique(db, name, code, exclude_id=department.id)
        department.name = name
        department.code = code
        if "description" in updates:
            department.description = clean_optional(updates["description"])
        db.commit()
        db.refresh(department)
        logger.info(f"Updated department {department.id}")
        return department

    @staticmethod
    def delete_department(db: Session, department: Department) -> None:
        department_id = department.id
        db.delete(department)
        db.commit()
        logger.info(f"Deleted department {department_id}")
