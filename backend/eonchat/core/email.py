"""Transactional email through the Brevo HTTP API."""
import logging
import httpx
from eonchat.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or never answers a send."""


def send_email(to: str, subject: str, html_content: str) -> dict:
    if not settings.BREVO_API_KEY:
        raise EmailDeliveryError("BREVO_API_KEY is not configured")

    logger.info(f"Sending email to {to}...")
    try:
        response = httpx.post(
            settings.BREVO_API_URL,
            json={
                "sender": {"email": settings.SMTP_FROM, "name": "EonChat"},
                "to": [{"email": to}],
                "subject": subject,
                "htmlContent": html_content,
            },
            headers={"api-key": settings.BREVO_API_KEY},
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.error(f"Email API timed out sending to {to}")
        raise EmailDeliveryError("Email API timed out") from e
    except httpx.HTTPStatusError as e:
        logger.error(f"Email API error {e.response.status_code}: {e.response.text}")
        raise EmailDeliveryError("Failed to send email") from e
    except httpx.HTTPError as e:
        logger.error(f"Email API request failed: {e}")
        raise EmailDeliveryError("Failed to send email") from e

    logger.info("Email sent successfully")
    return response.json() if response.content else {}


def otp_signup_email(otp: str) -> str:
    return f"""
        <h3>Welcome to EonChat!</h3>
        <p>Your verification code is:</p>
        <h1 style="letter-spacing:5px;color:#208c8c">{otp}</h1>
        <p>This code expires in {settings.OTP_EXPIRE_MINUTES} minutes.</p>
    """


def otp_reset_email(otp: str) -> str:
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 500px;">
          <h3>Password Reset Request</h3>
          <p>Use the following code to reset your password:</p>
          <h1 style="color: #e63946; letter-spacing: 4px;">{otp}</h1>
          <p>This code will expire in <b>{settings.OTP_EXPIRE_MINUTES} minutes</b>.</p>
          <p>If you did not request this, you can safely ignore this email.</p>
        </div>
    """
