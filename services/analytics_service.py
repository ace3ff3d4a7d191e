"""
System-wide analytics for admins and faculty.
"""
from typing import Dict, Any, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import (
    AppRole, UserRole, Event, DutyStatus, GateAssistanceLog, WeeklyReport,
    PerformanceEvaluation, IncidentReport, IncidentSeverity, Attendance, AttendanceStatus,
    PrefectApplication, ApplicationStatus
)
from services.user_service import UserService
from services.complaint_service import ComplaintService
from services.incident_service import IncidentService
from services.application_service import ApplicationService
from services.attendance_service import AttendanceService
from services.training_service import TrainingService
from services.duty_service import DutyService
from services.evaluation_service import EvaluationService
from services.profile_service import ProfileService
from services.prefect_ids import parse_prefect_ids
from core.serializers import complaint_to_dict, incident_to_dict


class AnalyticsService:
    """Aggregates across every table."""

    @staticmethod
    def system_stats(db: Session) -> Dict[str, Any]:
        """Entity totals and per-status breakdowns."""
        return {
            "users": UserService.count_by_role(db),
            "complaints": ComplaintService.get_stats(db),
            "incidents": IncidentService.get_stats(db),
            "applications": ApplicationService.get_stats(db),
            "duties": DutyService.get_stats(db),
            "attendance": AttendanceService.get_stats(db),
            "training": TrainingService.get_stats(db),
            "evaluations": EvaluationService.get_stats(db),
            "events": db.query(func.count(Event.id)).scalar() or 0,
            "gateLogs": db.query(func.count(GateAssistanceLog.id)).scalar() or 0,
            "weeklyReports": db.query(func.count(WeeklyReport.id)).scalar() or 0,
        }

    @staticmethod
    def top_performers(db: Session, limit: int = 5) -> List[Dict[str, Any]]:
        """Prefects by average rating, then number of evaluations."""
        rows = (
            db.query(
                PerformanceEvaluation.prefect_id,
                func.avg(PerformanceEvaluation.rating).label("avg_rating"),
                func.count(PerformanceEvaluation.id).label("evaluations"),
            )
            .group_by(PerformanceEvaluation.prefect_id)
            .order_by(func.avg(PerformanceEvaluation.rating).desc(), func.count(PerformanceEvaluation.id).desc())
            .limit(limit)
            .all()
        )
        names = ProfileService.name_lookup(db)
        return [
            {
                "prefectId": prefect_id,
                "prefectName": names.get(prefect_id, "Unknown"),
                "averageRating": round(float(avg_rating), 1),
                "evaluations": evaluations,
            }
            for prefect_id, avg_rating, evaluations in rows
        ]

    @staticmethod
    def prefect_activity(db: Session) -> List[Dict[str, Any]]:
        """Per prefect: duties, gate logs, weekly reports, attendance and average rating."""
        prefects = ProfileService.list_prefects(db)

        def grouped(column, key_column, *criteria) -> Dict[str, int]:
            query = db.query(key_column, func.count(column)).filter(*criteria).group_by(key_column)
            return dict(query.all())

        gate_logs = grouped(GateAssistanceLog.id, GateAssistanceLog.prefect_id)
        reports = grouped(WeeklyReport.id, WeeklyReport.prefect_id)
        present = grouped(
            Attendance.id, Attendance.prefect_id,
            Attendance.status.in_([AttendanceStatus.PRESENT, AttendanceStatus.LATE]),
        )
        absent = grouped(Attendance.id, Attendance.prefect_id, Attendance.status == AttendanceStatus.ABSENT)
        ratings = dict(
            db.query(PerformanceEvaluation.prefect_id, func.avg(PerformanceEvaluation.rating))
            .group_by(PerformanceEvaluation.prefect_id)
            .all()
        )
        duties = DutyService.list_duties(db)

        activity = []
        for profile in prefects:
            mine = [d for d in duties if profile.id in parse_prefect_ids(d.prefect_id)]
            avg = ratings.get(profile.id)
            activity.append({
                "prefectId": profile.id,
                "prefectName": profile.full_name,
                "duties": len(mine),
                "dutiesCompleted": sum(1 for d in mine if d.status == DutyStatus.COMPLETED),
                "dutiesMissed": sum(1 for d in mine if d.status == DutyStatus.MISSED),
                "gateLogs": gate_logs.get(profile.id, 0),
                "weeklyReports": reports.get(profile.id, 0),
                "daysPresent": present.get(profile.id, 0),
                "daysAbsent": absent.get(profile.id, 0),
                "averageRating": round(float(avg), 1) if avg is not None else None,
            })
        return activity

    @staticmethod
    def critical_issues(db: Session) -> Dict[str, Any]:
        """Open high/critical incidents and complaints still pending."""
        names = ProfileService.name_lookup(db)
        incidents = (
            db.query(IncidentReport)
            .filter(
                IncidentReport.is_resolved == False,  # noqa: E712
                IncidentReport.severity.in_([IncidentSeverity.HIGH, IncidentSeverity.CRITICAL]),
            )
            .order_by(IncidentReport.incident_date.desc())
            .all()
        )
        complaints = ComplaintService.list_complaints(db, status="pending")
        return {
            "incidents": [incident_to_dict(i, names) for i in incidents],
            "pendingComplaints": [complaint_to_dict(c, names) for c in complaints],
            "pendingApplications": db.query(func.count(PrefectApplication.id)).filter(
                PrefectApplication.status == ApplicationStatus.PENDING
            ).scalar() or 0,
            "prefectCount": db.query(func.count(UserRole.id)).filter(UserRole.role == AppRole.PREFECT).scalar() or 0,
        }
