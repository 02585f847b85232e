"""
Unified Email Service using the user's own SMTP server or Resend (fallback)
Provides email functionality using MJML templates for responsive design
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import APPROVAL_URL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import APP_NAME, approval_pending_template, smtp_test_template
from .security_utils import decrypt_password

logger = logging.getLogger(__name__)

# Initialize Resend as fallback
resend.api_key = RESEND_API_KEY


def has_smtp_credentials(user) -> bool:
    return bool(user and user.smtp_host and user.smtp_user and user.smtp_password)


def get_sender_address(user=None) -> str:
    """
    Get the appropriate sender address.
    Priority order:
    1. The user's own SMTP account, under their configured display name
    2. Platform default address
    """
    if has_smtp_credentials(user):
        return formataddr((user.smtp_from_name or APP_NAME, user.smtp_user))
    return EMAIL_FROM_ADDRESS


def open_smtp_connection(
    host: str, port: int, username: str, password: str, secure: bool = False, timeout: int = 30
) -> smtplib.SMTP:
    """Connect and authenticate: implicit TLS on 465 (or when ``secure``), STARTTLS otherwise"""
    context = ssl.create_default_context()
    if secure or port == 465:
        server = smtplib.SMTP_SSL(host, port, context=context, timeout=timeout)
    else:
        server = smtplib.SMTP(host, port, timeout=timeout)
        server.starttls(context=context)

    server.login(username, password)
    return server


def send_via_custom_smtp(
    user,
    to: Union[str, list[str]],
    subject: str,
    html_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """Send email via user's custom SMTP server"""
    sender = from_address or get_sender_address(user)
    recipients = [to] if isinstance(to, str) else to

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(html_content, "html", "utf-8"))

        server = open_smtp_connection(
            host=user.smtp_host,
            port=user.smtp_port or 587,
            username=user.smtp_user,
            password=decrypt_password(user.smtp_password),
            secure=bool(user.smtp_secure),
        )
        try:
            server.sendmail(user.smtp_user, recipients, msg.as_string())
        finally:
            server.quit()

        logger.info(f"✅ Custom SMTP email sent successfully via {user.smtp_host}")
        return {"id": f"smtp-{datetime.utcnow().timestamp()}", "success": True}

    except Exception as e:
        logger.error(f"❌ Custom SMTP send failed: {e}")
        raise Exception(f"Custom SMTP failed: {str(e)}") from e


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a mapping with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def deliver_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    user=None,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using the user's SMTP (if configured and live) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        user: Optional sending User whose SMTP settings are used
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    if user is not None and user.smtp_status == "live" and has_smtp_credentials(user):
        try:
            logger.info(f"📧 Sending email via custom SMTP: {user.smtp_host}")
            return send_via_custom_smtp(user, recipients, subject, html_content, from_address)
        except Exception as e:
            logger.warning(f"⚠️ Custom SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no custom SMTP")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built Email Templates for Common Events
# ============================================


def send_approval_email(
    user,
    workflow_name: str,
    execution_id: int,
    approval_message: Optional[str] = None,
    approval_url: str = APPROVAL_URL,
) -> dict:
    """
    Email the owner of a paused workflow execution through their own SMTP.

    Returns ``{"success": True}`` or ``{"success": False, "error": str}``;
    approval reminders never fall back to the platform sender.
    """
    if not user or not user.email:
        logger.info(f"[Email] User {getattr(user, 'id', None)} has no email configured")
        return {"success": False, "error": "No email configured"}

    if not user.notification_email_enabled:
        logger.info(f"[Email] User {user.id} has email notifications disabled")
        return {"success": False, "error": "Email notifications disabled"}

    if not has_smtp_credentials(user):
        logger.info(f"[Email] User {user.id} has no SMTP configured")
        return {"success": False, "error": "SMTP not configured"}

    try:
        mjml_content = approval_pending_template(
            user_name=user.name,
            workflow_name=workflow_name,
            approval_message=approval_message,
            execution_id=execution_id,
            approval_url=approval_url,
        )
        response = send_via_custom_smtp(
            user,
            to=user.email,
            subject=f"Pending approval: {workflow_name}",
            html_content=compile_mjml_to_html(mjml_content),
        )
        logger.info(f"[Email] Approval reminder sent to {user.email}")
        return {"success": True, "messageId": response.get("id")}
    except Exception as e:
        logger.error(f"[Email] Approval reminder failed for execution {execution_id}: {e}")
        return {"success": False, "error": str(e)}


def send_smtp_test_email(user, password: str) -> None:
    """Connect with the given credentials and send a test message to the account itself"""
    html_content = compile_mjml_to_html(smtp_test_template(user.name, user.smtp_host))

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"{APP_NAME} SMTP Test"
    msg["From"] = get_sender_address(user)
    msg["To"] = user.smtp_user
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    server = open_smtp_connection(
        host=user.smtp_host,
        port=user.smtp_port or 587,
        username=user.smtp_user,
        password=password,
        secure=bool(user.smtp_secure),
        timeout=10,
    )
    try:
        server.sendmail(user.smtp_user, [user.smtp_user], msg.as_string())
    finally:
        server.quit()
