"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Indigo/Slate color scheme
THEME = {
    "primary": "#667eea",
    "primary_dark": "#5568d3",
    "primary_light": "#e0e7ff",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#10b981",
    "warning": "#f59e0b",
    "warning_light": "#fef3c7",
    "danger": "#ef4444",
}

APP_NAME = "Piano Emotion Manager"

DEFAULT_APPROVAL_MESSAGE = "This workflow requires your approval to continue."


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_user_email: bool = False,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_user_email:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          This is an automatic email from {APP_NAME}. You can turn these notifications off in your profile settings.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="{THEME['primary']}" padding="28px 20px" border-radius="10px 10px 0 0">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="600" color="#ffffff" padding="0">
              {APP_NAME}
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              <a href="{FRONTEND_URL}" style="color: #64748b; text-decoration: none;">{APP_NAME}</a>
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def approval_pending_template(
    user_name: Optional[str],
    workflow_name: str,
    approval_message: Optional[str],
    execution_id: int,
    approval_url: str,
) -> str:
    """Reminder for a workflow execution that has been waiting for approval"""
    message = escape(approval_message or DEFAULT_APPROVAL_MESSAGE)
    content = f"""
    <mj-text>
      Hi <strong>{escape(user_name or "there")}</strong>,
    </mj-text>

    <mj-text container-background-color="{THEME['warning_light']}" padding="15px">
      <strong>Attention:</strong> a workflow has been waiting for your approval for more than 24 hours.
    </mj-text>

    <mj-text font-size="20px" font-weight="600" color="{THEME['text_primary']}" padding="20px 0 0 0">
      {escape(workflow_name)}
    </mj-text>

    <mj-text>
      <strong>Message:</strong><br/>
      {message}
    </mj-text>

    <mj-text>
      The workflow is paused until you decide. Please review the details and approve or reject the execution.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      <strong>Execution ID:</strong> #{execution_id}
    </mj-text>
    """

    return get_base_template(
        title="Pending approval",
        preview_text=f"{workflow_name} is waiting for your approval",
        content_sections=content,
        cta_url=approval_url,
        cta_label="Review and approve",
        is_user_email=True,
    )


def smtp_test_template(user_name: Optional[str], smtp_host: str) -> str:
    content = f"""
    <mj-text>
      Hi {escape(user_name or "there")},
    </mj-text>

    <mj-text>
      Your SMTP server <strong>{escape(smtp_host)}</strong> is configured correctly.
      Workflow notifications and campaign emails will be sent from this account.
    </mj-text>
    """

    return get_base_template(
        title="SMTP configuration verified",
        preview_text="Your email settings are working",
        content_sections=content,
        is_user_email=True,
    )


def message_template(title: str, body: str, html_body: Optional[str] = None) -> str:
    """
    Generic message used by workflow actions and marketing campaigns.

    ``body`` is plain text and is escaped; ``html_body`` is trusted, already
    sanitized HTML and takes precedence when present.
    """
    if html_body:
        rendered = html_body
    else:
        rendered = "<br/>".join(escape(line) for line in (body or "").splitlines())

    content = f"""
    <mj-text>
      {rendered}
    </mj-text>
    """

    return get_base_template(title=escape(title), preview_text=escape(title), content_sections=content)


def license_expired_template(user_name: Optional[str], expired_at: str, store_url: Optional[str]) -> str:
    content = f"""
    <mj-text>
      Hi {escape(user_name or "there")},
    </mj-text>

    <mj-text>
      Your {APP_NAME} license expired on <strong>{expired_at}</strong>.
      Renew it to keep access to your clients, pianos and agenda.
    </mj-text>
    """

    return get_base_template(
        title="Your license has expired",
        preview_text="Renew your license to keep working",
        content_sections=content,
        cta_url=store_url,
        cta_label="Renew license" if store_url else None,
        is_user_email=True,
    )
