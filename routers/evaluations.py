"""
Performance evaluation APIs.
Admins and faculty evaluate prefects; prefects read their own evaluations.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, PerformanceEvaluation
from auth.dependencies import get_db_session, get_current_user, require_staff, is_admin
from services.evaluation_service import EvaluationService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import evaluation_to_dict


router = APIRouter(prefix="/api/evaluations", tags=["evaluations"])


class EvaluationCreate(BaseModel):
    prefectId: Optional[str] = None
    rating: Optional[int] = None
    academicYearId: Optional[str] = None
    comments: Optional[str] = None


class EvaluationUpdate(BaseModel):
    rating: Optional[int] = None
    academicYearId: Optional[str] = None
    comments: Optional[str] = None


FIELD_MAP = {
    "rating": "rating",
    "academicYearId": "academic_year_id",
    "comments": "comments",
}


def _can_see(user: User, evaluation: PerformanceEvaluation) -> bool:
    return is_admin(user) or user.id in (evaluation.prefect_id, evaluation.evaluator_id)


def _get_visible_evaluation(db: Session, evaluation_id: str, user: User) -> PerformanceEvaluation:
    evaluation = EvaluationService.get_evaluation(db, evaluation_id)
    if not evaluation or not _can_see(user, evaluation):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Evaluation not found")
    return evaluation


def _require_author_or_admin(user: User, evaluation: PerformanceEvaluation) -> None:
    if not is_admin(user) and evaluation.evaluator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the evaluator or an admin can change this evaluation"
        )


@router.get("/stats")
async def evaluation_stats(
    prefect_id: Optional[str] = Query(None, alias="prefectId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Rating summary over the evaluations visible to the caller."""
    involving = None if is_admin(current_user) else current_user.id
    return EvaluationService.get_stats(db, prefect_id=prefect_id, involving=involving)


@router.get("")
async def list_evaluations(
    prefect_id: Optional[str] = Query(None, alias="prefectId"),
    academic_year_id: Optional[str] = Query(None, alias="academicYearId"),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Admins see all; others see evaluations where they are the prefect or the evaluator."""
    evaluations = EvaluationService.list_evaluations(
        db,
        prefect_id=prefect_id,
        academic_year_id=academic_year_id,
        search=search,
        involving=None if is_admin(current_user) else current_user.id,
    )
    names = ProfileService.name_lookup(db)
    return [evaluation_to_dict(e, names) for e in evaluations]


@router.get("/{evaluation_id}")
async def get_evaluation(
    evaluation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    evaluation = _get_visible_evaluation(db, evaluation_id, current_user)
    return evaluation_to_dict(evaluation, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_evaluation(
    data: EvaluationCreate,
    request: Request,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    try:
        evaluation = EvaluationService.create_evaluation(
            db,
            prefect_id=data.prefectId,
            rating=data.rating,
            evaluator_id=current_user.id,
            academic_year_id=data.academicYearId,
            comments=data.comments,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="evaluation_create", user_id=current_user.id,
        resource_type="evaluation", resource_id=evaluation.id, details={"rating": evaluation.rating}
    )
    return evaluation_to_dict(evaluation, ProfileService.name_lookup(db))


@router.put("/{evaluation_id}")
async def update_evaluation(
    evaluation_id: str,
    data: EvaluationUpdate,
    request: Request,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    evaluation = _get_visible_evaluation(db, evaluation_id, current_user)
    _require_author_or_admin(current_user, evaluation)
    updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
    try:
        evaluation = EvaluationService.update_evaluation(db, evaluation, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="evaluation_update", user_id=current_user.id,
        resource_type="evaluation", resource_id=evaluation.id, details={"fields": sorted(updates.keys())}
    )
    return evaluation_to_dict(evaluation, ProfileService.name_lookup(db))


@router.delete("/{evaluation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_evaluation(
    evaluation_id: str,
    request: Request,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session)
):
    evaluation = _get_visible_evaluation(db, evaluation_id, current_user)
    _require_author_or_admin(current_user, evaluation)
    EvaluationService.delete_evaluation(db, evaluation)
    AuditService.log_from_request(
        db=db, request=request, action="evaluation_delete", user_id=current_user.id,
        resource_type="evaluation", resource_id=evaluation_id
    )
