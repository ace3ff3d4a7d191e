"""
Database models for the prefect management system.
"""
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, DateTime, Time, Text,
    ForeignKey, JSON, Index, TypeDecorator, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


def generate_uuid() -> str:
    """Primary key default: random UUID4 as a 36-char string."""
    return str(uuid.uuid4())


# ============================================================================
# Custom Type Decorator for Enum Values
# ============================================================================

class EnumValue(TypeDecorator):
    """Type decorator to ensure enum values (not names) are stored."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        """Convert enum to its value when writing to database."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        """Convert database value back to enum when reading."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return self.enum_class(value)
            except ValueError:
                return value
        return value


# ============================================================================
# Enums - Must be defined before models that use them
# ============================================================================

class AppRole(str, enum.Enum):
    """Application roles. A user may hold several."""
    ADMIN = "admin"
    FACULTY = "faculty"
    PREFECT = "prefect"
    STUDENT = "student"


# Highest first; the first role a user holds is their primary role
ROLE_PRIORITY = [AppRole.ADMIN, AppRole.FACULTY, AppRole.PREFECT, AppRole.STUDENT]


class ComplaintStatus(str, enum.Enum):
    """Complaint lifecycle status."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ApplicationStatus(str, enum.Enum):
    """Prefect application review status."""
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class DutyStatus(str, enum.Enum):
    """Duty assignment status."""
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    MISSED = "missed"


class IncidentSeverity(str, enum.Enum):
    """Incident severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AttendanceStatus(str, enum.Enum):
    """Prefect attendance status."""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


# ============================================================================
# Accounts
# ============================================================================

class User(Base):
    """User model for authentication. Personal details live on Profile."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)  # Account lockout
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)  # Temporary lockout

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)
    password_changed_at = Column(DateTime, nullable=True)

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    roles = relationship(
        "UserRole", back_populates="user", cascade="all, delete-orphan",
        foreign_keys="UserRole.user_id"
    )
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_values(self) -> list[str]:
        """Role names held by this user, highest first."""
        held = {r.role for r in self.roles}
        return [role.value for role in ROLE_PRIORITY if role in held]

    @property
    def primary_role(self) -> str:
        """Highest-ranked role; users without a role row are treated as students."""
        values = self.role_values
        return values[0] if values else AppRole.STUDENT.value

    def has_role(self, *roles: str) -> bool:
        values = self.role_values
        return any(r in values for r in roles)


class Profile(Base):
    """Personal details for a user. Shares the user's id."""
    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(String(50), unique=True, nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    department = Column(String(255), nullable=True)
    year_level = Column(Integer, nullable=True)
    section = Column(String(50), nullable=True)
    avatar_url = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="profile")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    __table_args__ = (
        Index('idx_profile_email', 'email'),
        Index('idx_profile_name', 'first_name', 'last_name'),
    )


class UserRole(Base):
    """Role held by a user. One row per (user, role)."""
    __tablename__ = "user_roles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(EnumValue(AppRole), nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="roles", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_role'),
        Index('idx_user_role_user', 'user_id'),
        Index('idx_user_role_role', 'role'),
    )


class RefreshToken(Base):
    """Refresh token model for JWT refresh."""
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(255), unique=True, nullable=False)  # Hashed token
    device_info = Column(String(255), nullable=True)  # Device/browser info
    ip_address = Column(String(45), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    is_revoked = Column(Boolean, default=False, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_used_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index('idx_refresh_expires', 'expires_at'),
        Index('idx_refresh_user', 'user_id'),
    )


class OtpStore(Base):
    """OTP storage for password reset."""
    __tablename__ = "otp_store"

    email = Column(String(255), primary_key=True)
    otp = Column(String(10), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_otp_expires', 'expires_at'),
    )


class AuditLog(Base):
    """Audit log for security and compliance."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(100), nullable=False)  # e.g. "duty_create", "role_assign", "user_login"
    resource_type = Column(String(50), nullable=True)  # e.g. "duty", "complaint", "user"
    resource_id = Column(String(100), nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(String(500), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_audit_user', 'user_id'),
        Index('idx_audit_action', 'action'),
        Index('idx_audit_created', 'created_at'),
    )


# ============================================================================
# Reference data
# ============================================================================

class Department(Base):
    """School departments."""
    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    code = Column(String(50), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AcademicYear(Base):
    """Academic year / semester."""
    __tablename__ = "academic_years"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    year_start = Column(Integer, nullable=False)
    year_end = Column(Integer, nullable=False)
    semester = Column(String(50), nullable=False)
    is_current = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def label(self) -> str:
        return f"{self.year_start}-{self.year_end} {self.semester}"

    __table_args__ = (
        UniqueConstraint('year_start', 'year_end', 'semester', name='uq_academic_year'),
    )


# ============================================================================
# Training
# ============================================================================

class TrainingCategory(Base):
    """Grouping for training materials."""
    __tablename__ = "training_categories"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    materials = relationship("TrainingMaterial", back_populates="category", cascade="all, delete-orphan")


class TrainingMaterial(Base):
    """Training content for prefects. Drafts are visible to admins only."""
    __tablename__ = "training_materials"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    category_id = Column(String(36), ForeignKey("training_categories.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    file_url = Column(String(512), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("TrainingCategory", back_populates="materials")

    __table_args__ = (
        Index('idx_training_category', 'category_id'),
        Index('idx_training_published', 'is_published'),
    )


# ============================================================================
# Complaints / incidents / applications
# ============================================================================

class Complaint(Base):
    """Complaint submitted by any user."""
    __tablename__ = "complaints"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    submitted_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(EnumValue(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False)
    assigned_to = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_complaint_submitter', 'submitted_by'),
        Index('idx_complaint_status', 'status'),
        Index('idx_complaint_created', 'created_at'),
    )


class IncidentReport(Base):
    """Incident reported by any user."""
    __tablename__ = "incident_reports"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    reported_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(EnumValue(IncidentSeverity), default=IncidentSeverity.LOW, nullable=False)
    location = Column(String(255), nullable=True)
    incident_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_resolved = Column(Boolean, default=False, nullable=False)
    resolved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_incident_reporter', 'reported_by'),
        Index('idx_incident_resolved', 'is_resolved'),
        Index('idx_incident_severity', 'severity'),
        Index('idx_incident_date', 'incident_date'),
    )


class PrefectApplication(Base):
    """Student application to become a prefect."""
    __tablename__ = "prefect_applications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    applicant_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    academic_year_id = Column(String(36), ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False)
    statement = Column(Text, nullable=False)
    gpa = Column(Float, nullable=True)
    status = Column(EnumValue(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False)
    reviewed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    review_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('applicant_id', 'academic_year_id', name='uq_application_year'),
        Index('idx_application_status', 'status'),
        Index('idx_application_applicant', 'applicant_id'),
    )


# ============================================================================
# Prefect activity
# ============================================================================

class DutyAssignment(Base):
    """Duty assigned to one or more prefects.

    prefect_id holds a single user id, or a JSON array of user ids when the
    duty is shared. See services.prefect_ids.
    """
    __tablename__ = "duty_assignments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    prefect_id = Column(Text, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duty_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(EnumValue(DutyStatus), default=DutyStatus.ASSIGNED, nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_duty_date', 'duty_date'),
        Index('idx_duty_status', 'status'),
    )


class GateAssistanceLog(Base):
    """A prefect's shift at gate monitoring."""
    __tablename__ = "gate_assistance_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    prefect_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    log_date = Column(Date, nullable=False)
    time_in = Column(Time, nullable=False)
    time_out = Column(Time, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_gate_prefect', 'prefect_id'),
        Index('idx_gate_date', 'log_date'),
    )


class WeeklyReport(Base):
    """Weekly summary written by a prefect."""
    __tablename__ = "weekly_reports"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    prefect_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    week_start = Column(Date, nullable=False)
    week_end = Column(Date, nullable=False)
    summary = Column(Text, nullable=False)
    achievements = Column(Text, nullable=True)
    challenges = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_weekly_prefect', 'prefect_id'),
        Index('idx_weekly_start', 'week_start'),
    )


class PerformanceEvaluation(Base):
    """Rating of a prefect by faculty or admin."""
    __tablename__ = "performance_evaluations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    prefect_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    evaluator_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    academic_year_id = Column(String(36), ForeignKey("academic_years.id", ondelete="SET NULL"), nullable=True)
    rating = Column(Integer, nullable=False)  # 1..5
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_eval_prefect', 'prefect_id'),
        Index('idx_eval_evaluator', 'evaluator_id'),
    )


class Event(Base):
    """School event, visible to everyone."""
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    location = Column(String(255), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_event_date', 'event_date'),
    )


class Attendance(Base):
    """Daily attendance for a prefect. One row per prefect per day."""
    __tablename__ = "attendance"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    prefect_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    time_in = Column(Time, nullable=True)
    time_out = Column(Time, nullable=True)
    status = Column(EnumValue(AttendanceStatus), default=AttendanceStatus.PRESENT, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('prefect_id', 'date', name='uq_attendance_day'),
        Index('idx_attendance_date', 'date'),
    )
