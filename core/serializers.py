"""
Row -> JSON dict conversion shared by routers and dashboards.
Keys are camelCase to match the frontend.
"""
from datetime import date, datetime, time
from typing import Optional, Dict, Any

from database.models import (
    User, Profile, Department, DutyAssignment, GateAssistanceLog, Event, PerformanceEvaluation,
    Complaint, IncidentReport, PrefectApplication, WeeklyReport, AcademicYear,
    TrainingCategory, TrainingMaterial, Attendance, AuditLog
)
from services.prefect_ids import parse_prefect_ids

Names = Optional[Dict[str, str]]


def iso(value) -> Optional[str]:
    """ISO string for date/time/datetime, None passthrough."""
    if value is None:
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def enum_value(value) -> Optional[str]:
    return getattr(value, "value", value)


def _name(names: Names, user_id: Optional[str]) -> Optional[str]:
    if not names or not user_id:
        return None
    return names.get(user_id)


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "studentId": profile.student_id,
        "firstName": profile.first_name,
        "lastName": profile.last_name,
        "fullName": profile.full_name,
        "email": profile.email,
        "phone": profile.phone,
        "department": profile.department,
        "yearLevel": profile.year_level,
        "section": profile.section,
        "avatarUrl": profile.avatar_url,
        "createdAt": iso(profile.created_at),
        "updatedAt": iso(profile.updated_at),
    }


def user_to_dict(user: User) -> Dict[str, Any]:
    """Account with profile and roles."""
    return {
        "id": user.id,
        "email": user.email,
        "isActive": user.is_active,
        "roles": user.role_values,
        "primaryRole": user.primary_role,
        "profile": profile_to_dict(user.profile) if user.profile else None,
        "lastLogin": iso(user.last_login),
        "createdAt": iso(user.created_at),
    }


def duty_to_dict(duty: DutyAssignment, names: Names = None) -> Dict[str, Any]:
    prefect_ids = parse_prefect_ids(duty.prefect_id)
    data = {
        "id": duty.id,
        "prefectIds": prefect_ids,
        "title": duty.title,
        "description": duty.description,
        "dutyDate": iso(duty.duty_date),
        "startTime": iso(duty.start_time),
        "endTime": iso(duty.end_time),
        "location": duty.location,
        "status": enum_value(duty.status),
        "assignedBy": duty.assigned_by,
        "createdAt": iso(duty.created_at),
        "updatedAt": iso(duty.updated_at),
    }
    if names is not None:
        data["prefectNames"] = [names.get(pid, "Unknown") for pid in prefect_ids]
    return data


def gate_log_to_dict(log: GateAssistanceLog, names: Names = None) -> Dict[str, Any]:
    return {
        "id": log.id,
        "prefectId": log.prefect_id,
        "prefectName": _name(names, log.prefect_id),
        "logDate": iso(log.log_date),
        "timeIn": iso(log.time_in),
        "timeOut": iso(log.time_out),
        "notes": log.notes,
        "createdAt": iso(log.created_at),
    }


def event_to_dict(event: Event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "eventDate": iso(event.event_date),
        "startTime": iso(event.start_time),
        "endTime": iso(event.end_time),
        "location": event.location,
        "createdBy": event.created_by,
        "createdAt": iso(event.created_at),
    }


def evaluation_to_dict(evaluation: PerformanceEvaluation, names: Names = None) -> Dict[str, Any]:
    return {
        "id": evaluation.id,
        "prefectId": evaluation.prefect_id,
        "prefectName": _name(names, evaluation.prefect_id),
        "evaluatorId": evaluation.evaluator_id,
        "evaluatorName": _name(names, evaluation.evaluator_id),
        "academicYearId": evaluation.academic_year_id,
        "rating": evaluation.rating,
        "comments": evaluation.comments,
        "createdAt": iso(evaluation.created_at),
    }


def complaint_to_dict(complaint: Complaint, names: Names = None) -> Dict[str, Any]:
    return {
        "id": complaint.id,
        "submittedBy": complaint.submitted_by,
        "submitterName": _name(names, complaint.submitted_by),
        "subject": complaint.subject,
        "description": complaint.description,
        "status": enum_value(complaint.status),
        "assignedTo": complaint.assigned_to,
        "assigneeName": _name(names, complaint.assigned_to),
        "resolvedAt": iso(complaint.resolved_at),
        "createdAt": iso(complaint.created_at),
        "updatedAt": iso(complaint.updated_at),
    }


def incident_to_dict(incident: IncidentReport, names: Names = None) -> Dict[str, Any]:
    return {
        "id": incident.id,
        "reportedBy": incident.reported_by,
        "reporterName": _name(names, incident.reported_by),
        "title": incident.title,
        "description": incident.description,
        "severity": enum_value(incident.severity),
        "location": incident.location,
        "incidentDate": iso(incident.incident_date),
        "isResolved": incident.is_resolved,
        "resolvedBy": incident.resolved_by,
        "resolvedAt": iso(incident.resolved_at),
        "createdAt": iso(incident.created_at),
    }


def application_to_dict(application: PrefectApplication, names: Names = None) -> Dict[str, Any]:
    return {
        "id": application.id,
        "applicantId": application.applicant_id,
        "applicantName": _name(names, application.applicant_id),
        "academicYearId": application.academic_year_id,
        "statement": application.statement,
        "gpa": application.gpa,
        "status": enum_value(application.status),
        "reviewedBy": application.reviewed_by,
        "reviewNotes": application.review_notes,
        "reviewedAt": iso(application.reviewed_at),
        "createdAt": iso(application.created_at),
    }


def weekly_report_to_dict(report: WeeklyReport, names: Names = None) -> Dict[str, Any]:
    return {
        "id": report.id,
        "prefectId": report.prefect_id,
        "prefectName": _name(names, report.prefect_id),
        "weekStart": iso(report.week_start),
        "weekEnd": iso(report.week_end),
        "summary": report.summary,
        "achievements": report.achievements,
        "challenges": report.challenges,
        "createdAt": iso(report.created_at),
    }


def department_to_dict(department: Department) -> Dict[str, Any]:
    return {
        "id": department.id,
        "name": department.name,
        "code": department.code,
        "description": department.description,
        "createdAt": iso(department.created_at),
    }


def academic_year_to_dict(year: AcademicYear) -> Dict[str, Any]:
    return {
        "id": year.id,
        "yearStart": year.year_start,
        "yearEnd": year.year_end,
        "semester": year.semester,
        "label": year.label,
        "isCurrent": year.is_current,
        "createdAt": iso(year.created_at),
    }


def training_category_to_dict(category: TrainingCategory) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "createdAt": iso(category.created_at),
    }


def training_material_to_dict(material: TrainingMaterial) -> Dict[str, Any]:
    return {
        "id": material.id,
        "categoryId": material.category_id,
        "categoryName": material.category.name if material.category else None,
        "title": material.title,
        "content": material.content,
        "fileUrl": material.file_url,
        "createdBy": material.created_by,
        "isPublished": material.is_published,
        "createdAt": iso(material.created_at),
        "updatedAt": iso(material.updated_at),
    }


def attendance_to_dict(record: Attendance, names: Names = None) -> Dict[str, Any]:
    return {
        "id": record.id,
        "prefectId": record.prefect_id,
        "prefectName": _name(names, record.prefect_id),
        "date": iso(record.date),
        "timeIn": iso(record.time_in),
        "timeOut": iso(record.time_out),
        "status": enum_value(record.status),
        "notes": record.notes,
        "createdAt": iso(record.created_at),
    }


def audit_log_to_dict(log: AuditLog) -> Dict[str, Any]:
    return {
        "id": log.id,
        "userId": log.user_id,
        "action": log.action,
        "resourceType": log.resource_type,
        "resourceId": log.resource_id,
        "ipAddress": log.ip_address,
        "details": log.details,
        "createdAt": iso(log.created_at),
    }
