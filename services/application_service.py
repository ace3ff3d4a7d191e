"""
Prefect application (recruitment) service.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import PrefectApplication, ApplicationStatus, AcademicYear, UserRole, AppRole
from core.validators import require_text, update_text, require_value, parse_enum
from core.logger import logger


class ApplicationService:
    """Submit, review and list prefect_applications."""

    @staticmethod
    def list_applications(
        db: Session,
        status: Optional[str] = None,
        statuses: Optional[List[ApplicationStatus]] = None,
        applicant_id: Optional[str] = None,
        academic_year_id: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[PrefectApplication]:
        query = db.query(PrefectApplication)
        if status:
            query = query.filter(PrefectApplication.status == parse_enum(ApplicationStatus, status, "status"))
        if statuses:
            query = query.filter(PrefectApplication.status.in_(statuses))
        if applicant_id:
            query = query.filter(PrefectApplication.applicant_id == applicant_id)
        if academic_year_id:
            query = query.filter(PrefectApplication.academic_year_id == academic_year_id)
        if search:
            query = query.filter(PrefectApplication.statement.ilike(f"%{search.strip()}%"))
        query = query.order_by(PrefectApplication.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_application(db: Session, application_id: str) -> Optional[PrefectApplication]:
        return db.query(PrefectApplication).filter(PrefectApplication.id == application_id).first()

    @staticmethod
    def _validate_gpa(gpa: Optional[float]) -> None:
        if gpa is not None and not 0 <= gpa <= 5:
            raise ValueError("GPA must be between 0 and 5")

    @staticmethod
    def submit_application(
        db: Session,
        applicant_id: str,
        academic_year_id: Optional[str],
        statement: Optional[str],
        gpa: Optional[float] = None,
    ) -> PrefectApplication:
        """
        One application per applicant per academic year.

        Raises:
            ValueError: missing statement/year, unknown year, bad GPA, duplicate
        """
        statement = require_text(statement, "Personal statement")
        require_value(academic_year_id, "Academic year")
        if not db.query(AcademicYear).filter(AcademicYear.id == academic_year_id).first():
            raise ValueError("Academic year not found")
        ApplicationService._validate_gpa(gpa)

        existing = db.query(PrefectApplication).filter(
            PrefectApplication.applicant_id == applicant_id,
            PrefectApplication.academic_year_id == academic_year_id,
        ).first()
        if existing:
            raise ValueError("You have already submitted an application for this academic year")

        application = PrefectApplication(
            applicant_id=applicant_id,
            academic_year_id=academic_year_id,
            statement=statement,
            gpa=gpa,
            status=ApplicationStatus.PENDING,
        )
        db.add(application)
        db.commit()
        db.refresh(application)
        logger.info(f"Application {application.id} submitted by {applicant_id}")
        return application

    @staticmethod
    def update_application(
        db: Session, application: PrefectApplication, updates: Dict[str, Any]
    ) -> PrefectApplication:
        """Applicant edits while the application is still pending."""
        if application.status != ApplicationStatus.PENDING:
            raise ValueError("Only pending applications can be edited")
        if "statement" in updates and updates["statement"] is not None:
            application.statement = update_text(updates["statement"], "Personal statement")
        if "gpa" in updates:
            ApplicationService._validate_gpa(updates["gpa"])
            application.gpa = updates["gpa"]
        db.commit()
        db.refresh(application)
        logger.info(f"Updated application {application.id}")
        return application

    @staticmethod
    def review_application(
        db: Session,
        application: PrefectApplication,
        status: str,
        reviewer_id: str,
        review_notes: Optional[str] = None,
    ) -> PrefectApplication:
        """
        Set the review outcome. Approval grants the applicant the prefect role.
        """
        new_status = parse_enum(ApplicationStatus, status, "status")
        if new_status == ApplicationStatus.PENDING:
            raise ValueError("Review status must be under_review, approved or rejected")

        application.status = new_status
        application.reviewed_by = reviewer_id
        application.reviewed_at = datetime.utcnow()
        if review_notes is not None:
            application.review_notes = review_notes.strip() or None

        if new_status == ApplicationStatus.APPROVED:
            has_role = db.query(UserRole).filter(
                UserRole.user_id == application.applicant_id,
                UserRole.role == AppRole.PREFECT,
            ).first()
            if not has_role:
                db.add(UserRole(user_id=application.applicant_id, role=AppRole.PREFECT, assigned_by=reviewer_id))
                logger.info(f"Granted prefect role to {application.applicant_id}")

        db.commit()
        db.refresh(application)
        logger.info(f"Application {application.id} reviewed by {reviewer_id}: {new_status.value}")
        return application

    @staticmethod
    def delete_application(db: Session, application: PrefectApplication) -> None:
        application_id = application.id
        db.delete(application)
        db.commit()
        logger.info(f"Deleted application {application_id}")

    @staticmethod
    def get_stats(db: Session, applicant_id: Optional[str] = None) -> Dict[str, int]:
        query = db.query(PrefectApplication.status, func.count(PrefectApplication.id))
        if applicant_id:
            query = query.filter(PrefectApplication.applicant_id == applicant_id)
        by_status = {getattr(s, "value", s): c for s, c in query.group_by(PrefectApplication.status).all()}
        stats = {"total": sum(by_status.values())}
        for status in ApplicationStatus:
            key = "underReview" if status == ApplicationStatus.UNDER_REVIEW else status.value
            stats[key] = by_status.get(status.value, 0)
        return stats
