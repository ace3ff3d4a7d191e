"""
Department APIs. Everyone can read; admins manage.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, Department
from auth.dependencies import get_db_session, get_current_user, require_admin
from services.department_service import DepartmentService
from services.audit_service import AuditService
from core.serializers import department_to_dict


router = APIRouter(prefix="/api/departments", tags=["departments"])


class DepartmentCreate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None


class DepartmentUpdate(DepartmentCreate):
    pass


def _get_department_or_404(db: Session, department_id: str) -> Department:
    department = DepartmentService.get_department(db, department_id)
    if not department:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")
    return department


@router.get("")
async def list_departments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return [department_to_dict(d) for d in DepartmentService.list_departments(db)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    try:
        department = DepartmentService.create_department(
            db, name=data.name, code=data.code, description=data.description
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="department_create", user_id=current_user.id,
        resource_type="department", resource_id=department.id
    )
    return department_to_dict(department)


@router.put("/{department_id}")
async def update_department(
    department_id: str,
    data: DepartmentUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    department = _get_department_or_404(db, department_id)
    updates = data.model_dump(exclude_unset=True)
    try:
        department = DepartmentService.update_department(db, department, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="department_update", user_id=current_user.id,
        resource_type="department", resource_id=department.id
    )
    return department_to_dict(department)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    department_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    department = _get_department_or_404(db, department_id)
    DepartmentService.delete_department(db, department)
    AuditService.log_from_request(
        db=db, request=request, action="department_delete", user_id=current_user.id,
        resource_type="department", resource_id=department_id
    )
