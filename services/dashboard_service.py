"""
Role dashboards: counts plus short "recent" lists for each role.
"""
from datetime import date
from typing import Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import (
    User, UserRole, AppRole, Complaint, ComplaintStatus, IncidentReport,
    PrefectApplication, ApplicationStatus, DutyAssignment, Event, GateAssistanceLog,
    Attendance, WeeklyReport, PerformanceEvaluation, TrainingMaterial
)
from services.duty_service import DutyService
from services.event_service import EventService
from services.complaint_service import ComplaintService
from services.incident_service import IncidentService
from services.application_service import ApplicationService
from services.profile_service import ProfileService
from core.serializers import (
    complaint_to_dict, incident_to_dict, event_to_dict, duty_to_dict, application_to_dict
)
import config

OPEN_APPLICATION_STATUSES = [ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW]


def _count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


class DashboardService:
    """One summary builder per role."""

    @staticmethod
    def admin_dashboard(db: Session) -> Dict[str, Any]:
        limit = config.DASHBOARD_RECENT_LIMIT
        names = ProfileService.name_lookup(db)
        today = date.today()
        return {
            "role": AppRole.ADMIN.value,
            "stats": {
                "totalUsers": _count(db, User.id),
                "activePrefects": _count(db, UserRole.id, UserRole.role == AppRole.PREFECT),
                "pendingComplaints": _count(db, Complaint.id, Complaint.status == ComplaintStatus.PENDING),
                "openIncidents": _count(db, IncidentReport.id, IncidentReport.is_resolved == False),  # noqa: E712
                "pendingApplications": _count(
                    db, PrefectApplication.id, PrefectApplication.status == ApplicationStatus.PENDING
                ),
                "todayDuties": _count(db, DutyAssignment.id, DutyAssignment.duty_date == today),
            },
            "recentComplaints": [
                complaint_to_dict(c, names) for c in ComplaintService.list_complaints(db, limit=limit)
            ],
            "recentIncidents": [
                incident_to_dict(i, names) for i in IncidentService.list_incidents(db, limit=limit)
            ],
            "upcomingEvents": [
                event_to_dict(e) for e in EventService.list_events(db, upcoming=True, limit=limit)
            ],
        }

    @staticmethod
    def faculty_dashboard(db: Session) -> Dict[str, Any]:
        limit = config.DASHBOARD_RECENT_LIMIT
        names = ProfileService.name_lookup(db)
        return {
            "role": AppRole.FACULTY.value,
            "stats": {
                "pendingComplaints": _count(db, Complaint.id, Complaint.status == ComplaintStatus.PENDING),
                "openIncidents": _count(db, IncidentReport.id, IncidentReport.is_resolved == False),  # noqa: E712
                "pendingApplications": _count(
                    db, PrefectApplication.id, PrefectApplication.status.in_(OPEN_APPLICATION_STATUSES)
                ),
                "upcomingEvents": _count(db, Event.id, Event.event_date >= date.today()),
                "activePrefects": _count(db, UserRole.id, UserRole.role == AppRole.PREFECT),
                "totalEvaluations": _count(db, PerformanceEvaluation.id),
            },
            "recentComplaints": [
                complaint_to_dict(c, names) for c in ComplaintService.list_complaints(db, limit=limit)
            ],
            "pendingApplicationsList": [
                application_to_dict(a, names)
                for a in ApplicationService.list_applications(db, statuses=OPEN_APPLICATION_STATUSES, limit=limit)
            ],
        }

    @staticmethod
    def prefect_dashboard(db: Session, user: User) -> Dict[str, Any]:
        limit = config.DASHBOARD_RECENT_LIMIT
        names = ProfileService.name_lookup(db)
        return {
            "role": AppRole.PREFECT.value,
            "stats": {
                "myDuties": len(DutyService.list_duties(db, prefect_id=user.id)),
                "gateLogs": _count(db, GateAssistanceLog.id, GateAssistanceLog.prefect_id == user.id),
                "attendance": _count(db, Attendance.id, Attendance.prefect_id == user.id),
                "upcomingEvents": _count(db, Event.id, Event.event_date >= date.today()),
                "weeklyReports": _count(db, WeeklyReport.id, WeeklyReport.prefect_id == user.id),
                "myIncidents": _count(db, IncidentReport.id, IncidentReport.reported_by == user.id),
            },
            "upcomingDuties": [
                duty_to_dict(d, names) for d in DutyService.upcoming_for_prefect(db, user.id, limit=limit)
            ],
            "recentIncidents": [
                incident_to_dict(i, names)
                for i in IncidentService.list_incidents(db, reported_by=user.id, limit=limit)
            ],
        }

    @staticmethod
    def student_dashboard(db: Session, user: User) -> Dict[str, Any]:
        limit = config.DASHBOARD_RECENT_LIMIT
        return {
            "role": AppRole.STUDENT.value,
            "stats": {
                "myComplaints": _count(db, Complaint.id, Complaint.submitted_by == user.id),
                "myApplications": _count(db, PrefectApplication.id, PrefectApplication.applicant_id == user.id),
                "trainingMaterials": _count(
                    db, TrainingMaterial.id, TrainingMaterial.is_published == True  # noqa: E712
                ),
                "upcomingEvents": _count(db, Event.id, Event.event_date >= date.today()),
            },
            "recentComplaints": [
                complaint_to_dict(c) for c in ComplaintService.list_complaints(db, submitted_by=user.id, limit=limit)
            ],
            "upcomingEvents": [
                event_to_dict(e) for e in EventService.list_events(db, upcoming=True, limit=limit)
            ],
        }

    @staticmethod
    def for_user(db: Session, user: User) -> Dict[str, Any]:
        """Pick the dashboard for the user's primary role."""
        role = user.primary_role
        if role == AppRole.ADMIN.value:
            return DashboardService.admin_dashboard(db)
        if role == AppRole.FACULTY.value:
            return DashboardService.faculty_dashboard(db)
        if role == AppRole.PREFECT.value:
            return DashboardService.prefect_dashboard(db, user)
        return DashboardService.student_dashboard(db, user)
