"""
Prefect recruitment APIs.
Students apply once per academic year; admins review. Approval grants the prefect role.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, PrefectApplication, ApplicationStatus
from auth.dependencies import get_db_session, get_current_user, require_admin, is_staff
from services.application_service import ApplicationService
from services.auth_service import AuthService
from services.email_service import EmailService
from services.profile_service import ProfileService
from services.audit_service import AuditService
from core.serializers import application_to_dict
from core.logger import logger


router = APIRouter(prefix="/api/applications", tags=["recruitment"])


class ApplicationCreate(BaseModel):
    academicYearId: Optional[str] = None
    statement: Optional[str] = None
    gpa: Optional[float] = None


class ApplicationUpdate(BaseModel):
    statement: Optional[str] = None
    gpa: Optional[float] = None


class ApplicationReview(BaseModel):
    """status: under_review, approved or rejected."""
    status: str
    reviewNotes: Optional[str] = None


def _get_visible_application(db: Session, application_id: str, user: User) -> PrefectApplication:
    application = ApplicationService.get_application(db, application_id)
    if not application or (not is_staff(user) and application.applicant_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return application


@router.get("/stats")
async def application_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return ApplicationService.get_stats(db, applicant_id=None if is_staff(current_user) else current_user.id)


@router.get("")
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    academic_year_id: Optional[str] = Query(None, alias="academicYearId"),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Admins and faculty see every application; others their own."""
    try:
        applications = ApplicationService.list_applications(
            db,
            status=status_filter,
            applicant_id=None if is_staff(current_user) else current_user.id,
            academic_year_id=academic_year_id,
            search=search,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    names = ProfileService.name_lookup(db)
    return [application_to_dict(a, names) for a in applications]


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    application = _get_visible_application(db, application_id, current_user)
    return application_to_dict(application, ProfileService.name_lookup(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_application(
    data: ApplicationCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    try:
        application = ApplicationService.submit_application(
            db,
            applicant_id=current_user.id,
            academic_year_id=data.academicYearId,
            statement=data.statement,
            gpa=data.gpa,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="application_submit", user_id=current_user.id,
        resource_type="application", resource_id=application.id
    )
    return application_to_dict(application, ProfileService.name_lookup(db))


@router.put("/{application_id}")
async def update_application(
    application_id: str,
    data: ApplicationUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Applicants may edit their own application while it is pending."""
    application = _get_visible_application(db, application_id, current_user)
    if application.applicant_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the applicant can edit this application")
    updates = data.model_dump(exclude_unset=True)
    try:
        application = ApplicationService.update_application(db, application, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="application_update", user_id=current_user.id,
        resource_type="application", resource_id=application.id, details={"fields": sorted(updates.keys())}
    )
    return application_to_dict(application, ProfileService.name_lookup(db))


@router.post("/{application_id}/review")
async def review_application(
    application_id: str,
    data: ApplicationReview,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """
    Review an application. Admin only.
    The applicant is emailed when an approval or rejection is recorded and mail is configured.
    """
    application = _get_visible_application(db, application_id, current_user)
    try:
        application = ApplicationService.review_application(
            db,
            application,
            status=data.status,
            reviewer_id=current_user.id,
            review_notes=data.reviewNotes,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db, request=request, action="application_review", user_id=current_user.id,
        resource_type="application", resource_id=application.id, details={"status": application.status.value}
    )

    fm = getattr(request.app.state, "mail", None)
    if fm and application.status in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
        applicant = AuthService.get_user_by_id(db, application.applicant_id)
        if applicant:
            name = applicant.profile.full_name if applicant.profile else applicant.email
            sent = await EmailService.send_application_decision_email(
                applicant.email,
                name,
                application.status == ApplicationStatus.APPROVED,
                application.review_notes,
                fm,
            )
            if not sent:
                logger.warning(f"Could not email review outcome for application {application.id}")

    return application_to_dict(application, ProfileService.name_lookup(db))


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    application = _get_visible_application(db, application_id, current_user)
    ApplicationService.delete_application(db, application)
    AuditService.log_from_request(
        db=db, request=request, action="application_delete", user_id=current_user.id,
        resource_type="application", resource_id=application_id
    )
