"""
Authentication service: sign-up, login with lockout, token issue and rotation, password reset.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import User, Profile, UserRole, AppRole, RefreshToken, OtpStore
from auth.security import (
    verify_password, get_password_hash, validate_password, create_access_token, create_refresh_token,
    decode_refresh_token, generate_refresh_token_hash
)
from core.validators import require_text, clean_optional
from core.logger import logger
import config


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        student_id: Optional[str] = None,
        roles: Optional[list[AppRole]] = None,
        assigned_by: Optional[str] = None,
    ) -> User:
        """
        Create a user with profile and roles.

        New accounts get the student role unless roles is given.

        Raises:
            ValueError: invalid password, missing name, or duplicate email / student ID
        """
        is_valid, error_message = validate_password(password)
        if not is_valid:
            raise ValueError(error_message)

        first_name = require_text(first_name, "First name")
        last_name = require_text(last_name, "Last name")
        email = email.strip().lower()
        student_id = clean_optional(student_id)

        existing = db.query(User).filter(func.lower(User.email) == email).first()
        if existing:
            raise ValueError("User with this email already exists")

        if student_id and db.query(Profile).filter(Profile.student_id == student_id).first():
            raise ValueError("Student ID is already in use")

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            is_active=True,
            password_changed_at=datetime.utcnow(),
        )
        user.profile = Profile(
            first_name=first_name,
            last_name=last_name,
            email=email,
            student_id=student_id,
        )
        for role in roles or [AppRole.STUDENT]:
            user.roles.append(UserRole(role=role, assigned_by=assigned_by))

        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user: {email} (roles: {user.role_values})")
        return user

    @staticmethod
    def authenticate_user(
        db: Session,
        email: str,
        password: str,
        ip_address: Optional[str] = None
    ) -> Optional[User]:
        """
        Authenticate a user with account lockout protection.

        Returns:
            User if authenticated, None otherwise
        """
        user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        if not user:
            return None

        if user.is_locked:
            if user.locked_until and user.locked_until > datetime.utcnow():
                logger.warning(f"Login attempt for locked account: {email} from {ip_address}")
                return None
            # Lockout expired, unlock account
            user.is_locked = False
            user.locked_until = None
            user.failed_login_attempts = 0
            db.commit()

        if not verify_password(password, user.hashed_password):
            user.failed_login_attempts += 1

            if user.failed_login_attempts >= config.MAX_LOGIN_ATTEMPTS:
                user.is_locked = True
                user.locked_until = datetime.utcnow() + timedelta(minutes=config.LOCKOUT_DURATION_MINUTES)
                logger.warning(f"Account locked due to too many failed attempts: {email}")

            db.commit()
            return None

        if not user.is_active:
            return None

        user.failed_login_attempts = 0
        user.is_locked = False
        user.locked_until = None
        user.last_login = datetime.utcnow()
        db.commit()

        return user

    @staticmethod
    def create_tokens(user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        data = {
            "sub": user.id,
            "email": user.email,
            "roles": user.role_values,
        }
        access_token = create_access_token(data, config.SECRET_KEY)
        refresh_token = create_refresh_token({"sub": user.id}, config.SECRET_KEY)
        return access_token, refresh_token

    @staticmethod
    def save_refresh_token(
        db: Session,
        user_id: str,
        refresh_token: str,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> RefreshToken:
        """Store the hash of a newly issued refresh token."""
        refresh_token_obj = RefreshToken(
            user_id=user_id,
            token_hash=generate_refresh_token_hash(refresh_token),
            device_info=device_info,
            ip_address=ip_address,
            expires_at=datetime.utcnow() + timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)
        )
        db.add(refresh_token_obj)
        db.commit()
        db.refresh(refresh_token_obj)
        return refresh_token_obj

    @staticmethod
    def rotate_refresh_token(
        db: Session,
        refresh_token: str,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> Tuple[User, str, str]:
        """
        Exchange a valid refresh token for a new token pair. The old one is revoked.

        Raises:
            ValueError: token invalid, revoked, expired, or its user is gone/inactive
        """
        payload = decode_refresh_token(refresh_token, config.SECRET_KEY)
        if payload is None:
            raise ValueError("Invalid refresh token")

        token_hash = generate_refresh_token_hash(refresh_token)
        stored = db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash,
            RefreshToken.is_revoked == False  # noqa: E712
        ).first()
        if not stored or stored.expires_at < datetime.utcnow():
            raise ValueError("Refresh token has been revoked or expired")

        user = db.query(User).filter(User.id == payload.get("sub")).first()
        if not user or not user.is_active:
            raise ValueError("User not found or inactive")

        stored.is_revoked = True
        stored.revoked_at = datetime.utcnow()
        stored.last_used_at = datetime.utcnow()

        access_token, new_refresh = AuthService.create_tokens(user)
        AuthService.save_refresh_token(db, user.id, new_refresh, device_info, ip_address)
        return user, access_token, new_refresh

    @staticmethod
    def revoke_all_refresh_tokens(db: Session, user_id: str) -> int:
        """Revoke every live refresh token of a user (logout everywhere)."""
        tokens = db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked == False  # noqa: E712
        ).all()
        now = datetime.utcnow()
        for token in tokens:
            token.is_revoked = True
            token.revoked_at = now
        db.commit()
        return len(tokens)

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    # ------------------------------------------------------------------
    # Password reset via emailed OTP
    # ------------------------------------------------------------------

    @staticmethod
    def store_otp(db: Session, email: str, otp: str) -> OtpStore:
        """Save (or replace) the reset code for an email."""
        email = email.strip().lower()
        expires_at = datetime.utcnow() + timedelta(minutes=config.OTP_EXPIRY_MINUTES)
        row = db.query(OtpStore).filter(OtpStore.email == email).first()
        if row:
            row.otp = otp
            row.expires_at = expires_at
            row.created_at = datetime.utcnow()
        else:
            row = OtpStore(email=email, otp=otp, expires_at=expires_at)
            db.add(row)
        db.commit()
        return row

    @staticmethod
    def reset_password(db: Session, email: str, otp: str, new_password: str) -> User:
        """
        Set a new password after checking the emailed code. The code is single use.

        Raises:
            ValueError: wrong/expired code, weak password, or unknown account
        """
        email = email.strip().lower()
        row = db.query(OtpStore).filter(OtpStore.email == email).first()
        if not row or row.otp != otp.strip():
            raise ValueError("Invalid or expired OTP")
        if row.expires_at < datetime.utcnow():
            db.delete(row)
            db.commit()
            raise ValueError("Invalid or expired OTP")

        is_valid, error_message = validate_password(new_password)
        if not is_valid:
            raise ValueError(error_message)

        user = AuthService.get_user_by_email(db, email)
        if not user:
            raise ValueError("Invalid or expired OTP")

        user.hashed_password = get_password_hash(new_password)
        user.password_changed_at = datetime.utcnow()
        user.failed_login_attempts = 0
        user.is_locked = False
        user.locked_until = None
        db.delete(row)
        db.commit()
        AuthService.revoke_all_refresh_tokens(db, user.id)
        logger.info(f"Password reset for {email}")
        return user
