"""
Email service for password-reset codes and account notices.
Uses fastapi-mail; the FastMail instance lives on app.state.mail.
"""
from typing import Optional, TYPE_CHECKING
import secrets
import string

from fastapi_mail import MessageSchema, MessageType

from core.logger import logger
import config

if TYPE_CHECKING:
    from fastapi_mail import FastMail


def _wrap(title: str, inner_html: str) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #1E40AF;">{title}</h2>
            {inner_html}
        </div>
    </body>
    </html>
    """


class EmailService:
    """Service for sending emails via fastapi-mail."""

    @staticmethod
    def generate_otp(length: int = 6) -> str:
        """Random numeric code of the given length."""
        return "".join(secrets.choice(string.digits) for _ in range(length))

    @staticmethod
    async def send_html(fm: "FastMail", to_email: str, subject: str, html_body: str) -> bool:
        """
        Send one HTML email.

        Returns:
            True if sent successfully, False otherwise
        """
        message = MessageSchema(
            subject=subject,
            recipients=[to_email],
            body=html_body,
            subtype=MessageType.html,
        )
        try:
            await fm.send_message(message)
            logger.info(f"Email '{subject}' sent to {to_email}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
            return False

    @staticmethod
    async def send_otp_email(to_email: str, otp: str, fm: "FastMail") -> bool:
        """Send the password-reset code."""
        body = _wrap(config.APP_NAME, f"""
            <p>Your password reset code is:</p>
            <div style="background-color: #f4f4f4; padding: 20px; text-align: center; margin: 20px 0; border-radius: 5px;">
                <h1 style="color: #1E40AF; font-size: 32px; margin: 0; letter-spacing: 5px;">{otp}</h1>
            </div>
            <p>This code will expire in {config.OTP_EXPIRY_MINUTES} minutes.</p>
            <p style="color: #666; font-size: 12px;">If you didn't request this code, please ignore this email.</p>
        """)
        return await EmailService.send_html(fm, to_email, f"Your password reset code - {config.APP_NAME}", body)

    @staticmethod
    async def send_application_decision_email(
        to_email: str, name: str, approved: bool, notes: Optional[str], fm: "FastMail"
    ) -> bool:
        """Tell an applicant their prefect application was approved or rejected."""
        outcome = "approved" if approved else "not approved"
        notes_html = f"<p><strong>Reviewer notes:</strong> {notes}</p>" if notes else ""
        body = _wrap("Prefect Application Update", f"""
            <p>Hello {name},</p>
            <p>Your prefect application has been <strong>{outcome}</strong>.</p>
            {notes_html}
        """)
        return await EmailService.send_html(fm, to_email, f"Prefect application {outcome}", body)
