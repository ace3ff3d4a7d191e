"""
Performance evaluation service.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import PerformanceEvaluation
from core.validators import clean_optional, require_value, validate_rating
from core.logger import logger


class EvaluationService:
    """CRUD and rating stats for performance_evaluations."""

    @staticmethod
    def list_evaluations(
        db: Session,
        prefect_id: Optional[str] = None,
        evaluator_id: Optional[str] = None,
        involving: Optional[str] = None,
        academic_year_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[PerformanceEvaluation]:
        """
        Evaluations, newest first.

        involving matches rows where the user is either the prefect or the evaluator.
        """
        query = db.query(PerformanceEvaluation)
        if prefect_id:
            query = query.filter(PerformanceEvaluation.prefect_id == prefect_id)
        if evaluator_id:
            query = query.filter(PerformanceEvaluation.evaluator_id == evaluator_id)
        if involving:
            query = query.filter(or_(
                PerformanceEvaluation.prefect_id == involving,
                PerformanceEvaluation.evaluator_id == involving,
            ))
        if academic_year_id:
            query = query.filter(PerformanceEvaluation.academic_year_id == academic_year_id)
        if search:
            query = query.filter(PerformanceEvaluation.comments.ilike(f"%{search.strip()}%"))
        return query.order_by(PerformanceEvaluation.created_at.desc()).all()

    @staticmethod
    def get_evaluation(db: Session, evaluation_id: str) -> Optional[PerformanceEvaluation]:
        return db.query(PerformanceEvaluation).filter(PerformanceEvaluation.id == evaluation_id).first()

    @staticmethod
    def create_evaluation(
        db: Session,
        prefect_id: Optional[str],
        rating: Optional[int],
        evaluator_id: Optional[str] = None,
        academic_year_id: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> PerformanceEvaluation:
        """
        Raises:
            ValueError: missing prefect, rating outside 1..5
        """
        require_value(prefect_id, "Prefect")
        validate_rating(rating)
        evaluation = PerformanceEvaluation(
            prefect_id=prefect_id,
            evaluator_id=evaluator_id,
            academic_year_id=academic_year_id,
            rating=rating,
            comments=clean_optional(comments),
        )
        db.add(evaluation)
        db.commit()
        db.refresh(evaluation)
        logger.info(f"Created evaluation {evaluation.id} for prefect {prefect_id} (rating {rating})")
        return evaluation

    @staticmethod
    def update_evaluation(
        db: Session, evaluation: PerformanceEvaluation, updates: Dict[str, Any]
    ) -> PerformanceEvaluation:
        if "rating" in updates:
            evaluation.rating = validate_rating(updates["rating"])
        if "comments" in updates:
            evaluation.comments = clean_optional(updates["comments"])
        if "academic_year_id" in updates:
            evaluation.academic_year_id = updates["academic_year_id"]
        db.commit()
        db.refresh(evaluation)
        logger.info(f"Updated evaluation {evaluation.id}")
        return evaluation

    @staticmethod
    def delete_evaluation(db: Session, evaluation: PerformanceEvaluation) -> None:
        evaluation_id = evaluation.id
        db.delete(evaluation)
        db.commit()
        logger.info(f"Deleted evaluation {evaluation_id}")

    @staticmethod
    def summarize(evaluations: List[PerformanceEvaluation]) -> Dict[str, Any]:
        """
        Rating summary: total, average (1 decimal), and buckets
        excellent (5), good (4), average (3), poor (2 or less).
        """
        ratings = [e.rating for e in evaluations]
        total = len(ratings)
        return {
            "total": total,
            "averageRating": round(sum(ratings) / total, 1) if total else 0,
            "excellent": sum(1 for r in ratings if r == 5),
            "good": sum(1 for r in ratings if r == 4),
            "average": sum(1 for r in ratings if r == 3),
            "poor": sum(1 for r in ratings if r <= 2),
        }

    @staticmethod
    def get_stats(db: Session, prefect_id: Optional[str] = None, involving: Optional[str] = None) -> Dict[str, Any]:
        return EvaluationService.summarize(
            EvaluationService.list_evaluations(db, prefect_id=prefect_id, involving=involving)
        )
