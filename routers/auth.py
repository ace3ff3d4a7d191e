"""
Authentication endpoints: sign-up, login, token refresh, logout, password reset.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from typing import Optional

from database.models import User
from auth.dependencies import get_db_session, get_current_user
from services.auth_service import AuthService
from services.audit_service import AuditService
from services.email_service import EmailService
from core.serializers import user_to_dict
from core.logger import logger
import config


router = APIRouter(prefix="/api/auth", tags=["authentication"])


# Request Models
class SignUpRequest(BaseModel):
    """Sign-up request. New accounts start with the student role."""
    email: EmailStr
    password: str
    firstName: str
    lastName: str
    studentId: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request."""
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """Refresh token request."""
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    """Request a password reset code."""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Reset password with emailed code."""
    email: EmailStr
    otp: str
    password: str


class TokenResponse(BaseModel):
    """Token response model."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


class LogoutResponse(BaseModel):
    """Logout response."""
    success: bool


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _issue_tokens(db: Session, request: Request, user: User) -> TokenResponse:
    access_token, refresh_token = AuthService.create_tokens(user)
    AuthService.save_refresh_token(
        db=db,
        user_id=user.id,
        refresh_token=refresh_token,
        device_info=request.headers.get("user-agent"),
        ip_address=_client_ip(request)
    )
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user_to_dict(user)
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignUpRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """
    Create an account (profile + student role) and sign in.
    """
    try:
        user = AuthService.create_user(
            db=db,
            email=data.email,
            password=data.password,
            first_name=data.firstName,
            last_name=data.lastName,
            student_id=data.studentId,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db,
        request=request,
        action="signup",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )
    return _issue_tokens(db, request, user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """
    Login with email + password.
    Returns JWT tokens and user info (roles, primary role, profile).
    """
    user = AuthService.authenticate_user(
        db=db,
        email=credentials.email,
        password=credentials.password,
        ip_address=_client_ip(request)
    )

    if not user:
        logger.warning(f"Failed login for {credentials.email} from {_client_ip(request)}")
        AuditService.log_from_request(
            db=db,
            request=request,
            action="login_failed",
            resource_type="user",
            details={"email": credentials.email}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    AuditService.log_from_request(
        db=db,
        request=request,
        action="login",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )
    return _issue_tokens(db, request, user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    token_data: RefreshTokenRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """Exchange a refresh token for a new token pair. The old refresh token is revoked."""
    try:
        user, access_token, new_refresh_token = AuthService.rotate_refresh_token(
            db=db,
            refresh_token=token_data.refresh_token,
            device_info=request.headers.get("user-agent"),
            ip_address=_client_ip(request)
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return TokenResponse(
        access_token=access_token,
        refresh_token=new_refresh_token,
        expires_in=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user_to_dict(user)
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Logout: revoke every refresh token of the caller."""
    revoked = AuthService.revoke_all_refresh_tokens(db, current_user.id)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="logout",
        user_id=current_user.id,
        resource_type="user",
        resource_id=current_user.id,
        details={"revoked_tokens": revoked}
    )
    return {"success": True}


@router.get("/me", response_model=dict)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Current user with profile, roles and primary role."""
    return user_to_dict(current_user)


@router.post("/forgot-password")
async def forgot_password(
    request_data: ForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """
    Email a password reset code.
    Always answers success for unknown emails so accounts cannot be probed.
    """
    email = request_data.email

    fm = getattr(request.app.state, "mail", None)
    if not fm:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email service not configured. Set SMTP_USER and SMTP_PASSWORD."
        )

    user = AuthService.get_user_by_email(db, email)
    if not user:
        logger.info(f"Password reset requested for unknown email {email}")
        return {"success": True}

    otp = EmailService.generate_otp(length=6)
    AuthService.store_otp(db, email, otp)

    success = await EmailService.send_otp_email(email, otp, fm)
    if not success:
        logger.error(f"Failed to send reset code to {email}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send reset code email"
        )

    AuditService.log_from_request(
        db=db,
        request=request,
        action="send_otp",
        user_id=user.id,
        resource_type="otp"
    )
    return {"success": True}


@router.post("/reset-password")
async def reset_password(
    request_data: ResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """Set a new password using the emailed code."""
    try:
        user = AuthService.reset_password(db, request_data.email, request_data.otp, request_data.password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService.log_from_request(
        db=db,
        request=request,
        action="reset_password",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )
    return {"success": True}
