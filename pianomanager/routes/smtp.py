"""
Custom SMTP Setup Routes
Lets each user send workflow and campaign emails from their own mail server
"""

import logging
import smtplib
import ssl
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..email_service import has_smtp_credentials, send_smtp_test_email
from ..models import User
from ..security_utils import decrypt_password, encrypt_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/smtp", tags=["SMTP"])


class SetupSMTPRequest(BaseModel):
    host: str  # e.g., smtp.gmail.com
    port: int = 587  # 587 for STARTTLS, 465 for SSL
    user: EmailStr
    password: str
    secure: bool = False
    fromName: Optional[str] = None


class SMTPStatusResponse(BaseModel):
    enabled: bool
    host: Optional[str]
    port: Optional[int]
    user: Optional[str]
    secure: bool
    fromName: Optional[str]
    status: Optional[str]  # live, failed, disabled
    lastTestAt: Optional[str]
    errorMessage: Optional[str]
    notificationEmailEnabled: bool


class NotificationToggleRequest(BaseModel):
    enabled: bool


def test_smtp_connection(user: User, password: str) -> tuple[bool, str]:
    """
    Test SMTP connection by connecting, authenticating and sending a message to self.
    Returns (success, message)
    """
    try:
        send_smtp_test_email(user, password)
        logger.info(f"SMTP test successful for {user.smtp_user}")
        return True, "Connection successful! Test email sent."

    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP auth error: {e}")
        return False, "Authentication failed. Check username and password."
    except smtplib.SMTPConnectError as e:
        logger.error(f"SMTP connect error: {e}")
        return False, f"Could not connect to {user.smtp_host}:{user.smtp_port}. Check host and port."
    except smtplib.SMTPServerDisconnected as e:
        logger.error(f"SMTP disconnected: {e}")
        return False, "Server disconnected unexpectedly. Try a different port."
    except ssl.SSLError as e:
        logger.error(f"SSL error: {e}")
        return False, "SSL/TLS error. Try toggling the secure setting or use port 465."
    except TimeoutError:
        logger.error("SMTP timeout")
        return False, "Connection timed out. Check host and port."
    except Exception as e:
        logger.error(f"SMTP error: {e}")
        return False, f"Connection failed: {str(e)}"


def _status_response(user: User) -> SMTPStatusResponse:
    return SMTPStatusResponse(
        enabled=bool(user.smtp_host) and user.smtp_status != "disabled",
        host=user.smtp_host,
        port=user.smtp_port or 587,
        user=user.smtp_user,
        secure=bool(user.smtp_secure),
        fromName=user.smtp_from_name,
        status=user.smtp_status,
        lastTestAt=user.smtp_last_test_at.isoformat() if user.smtp_last_test_at else None,
        errorMessage=user.smtp_error,
        notificationEmailEnabled=bool(user.notification_email_enabled),
    )


@router.get("/status", response_model=SMTPStatusResponse)
async def get_smtp_status(current_user: User = Depends(get_current_user)):
    """Get current SMTP configuration status"""
    return _status_response(current_user)


@router.post("/setup", response_model=SMTPStatusResponse)
async def setup_smtp(
    request: SetupSMTPRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save SMTP settings; the password is stored encrypted and the connection is untested until /test"""
    logger.info(f"Saving SMTP settings for user {current_user.id}: {request.user}")

    current_user.smtp_host = request.host
    current_user.smtp_port = request.port
    current_user.smtp_user = request.user
    current_user.smtp_password = encrypt_password(request.password)
    current_user.smtp_secure = request.secure
    current_user.smtp_from_name = request.fromName
    current_user.smtp_status = None
    current_user.smtp_error = None
    db.commit()
    db.refresh(current_user)

    return _status_response(current_user)


@router.post("/test")
async def test_smtp_settings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Test the saved SMTP connection and record the outcome"""
    if not has_smtp_credentials(current_user):
        raise HTTPException(status_code=404, detail="No SMTP configuration found")

    success, message = test_smtp_connection(current_user, decrypt_password(current_user.smtp_password))

    current_user.smtp_last_test_at = datetime.utcnow()
    current_user.smtp_status = "live" if success else "failed"
    current_user.smtp_error = None if success else message
    db.commit()

    return {"success": success, "status": current_user.smtp_status, "message": message}


@router.post("/disable")
async def disable_smtp(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stop using custom SMTP; settings are kept so it can be re-tested later"""
    if not current_user.smtp_host:
        raise HTTPException(status_code=404, detail="No SMTP configuration found")

    current_user.smtp_status = "disabled"
    db.commit()

    return {"success": True, "message": "Custom SMTP disabled. Using the platform sender."}


@router.put("/notifications")
async def toggle_notification_emails(
    request: NotificationToggleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Enable or disable approval reminder emails"""
    current_user.notification_email_enabled = request.enabled
    db.commit()
    return {"success": True, "notificationEmailEnabled": request.enabled}
