"""
MJML Email Templates
Reservation emails, compiled to HTML by email_service
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    footer_text: str = "You're receiving this because you have an appointment booked through Centralia.",
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
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 24px 0" />

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {footer_text}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_block(service_name: str, specialist_name: str, business_name: str, scheduled: str) -> str:
    return f"""
    <mj-text padding="0 0 0 20px" color="{THEME['text_primary']}">
      <strong>Service:</strong> {escape(service_name)}<br/>
      <strong>Specialist:</strong> {escape(specialist_name)}<br/>
      <strong>Business:</strong> {escape(business_name)}<br/>
      <strong>When:</strong> {scheduled}
    </mj-text>
    """


def reservation_created_template(
    specialist_name: str,
    client_name: str,
    service_name: str,
    business_name: str,
    scheduled: str,
    notes: Optional[str] = None,
) -> str:
    """New reservation notification for the specialist"""
    notes_section = ""
    if notes:
        notes_section = f"""
        <mj-text color="{THEME['text_muted']}">
          <strong>Client notes:</strong> {escape(notes)}
        </mj-text>
        """

    content = f"""
    <mj-text>
      Hi {escape(specialist_name)},
    </mj-text>

    <mj-text>
      <strong>{escape(client_name)}</strong> has requested an appointment with you. It is pending your confirmation.
    </mj-text>

    {_details_block(service_name, specialist_name, business_name, scheduled)}
    {notes_section}
    """

    return get_base_template(
        title="New Reservation",
        preview_text=f"New reservation from {client_name}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/reservations",
        cta_label="Review Reservation",
    )


def reservation_confirmed_template(
    client_name: str,
    service_name: str,
    specialist_name: str,
    business_name: str,
    scheduled: str,
) -> str:
    """Reservation confirmed notification for the client"""
    content = f"""
    <mj-text>
      Hi {escape(client_name)},
    </mj-text>

    <mj-text align="center" font-size="18px" font-weight="600" color="{THEME['success']}" padding="20px 0">
      ✓ Your appointment is confirmed
    </mj-text>

    {_details_block(service_name, specialist_name, business_name, scheduled)}

    <mj-text>
      Please arrive a few minutes early. If you can no longer attend, cancel the reservation so the slot can be offered to someone else.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"Appointment confirmed with {specialist_name}",
        content_sections=content,
    )


def reservation_cancelled_template(
    client_name: str,
    service_name: str,
    specialist_name: str,
    business_name: str,
    scheduled: str,
    cancellation_reason: Optional[str] = None,
) -> str:
    """Reservation cancelled notification for the client"""
    reason_section = ""
    if cancellation_reason:
        reason_section = f"""
        <mj-text color="{THEME['text_muted']}">
          <strong>Reason:</strong> {escape(cancellation_reason)}
        </mj-text>
        """

    content = f"""
    <mj-text>
      Hi {escape(client_name)},
    </mj-text>

    <mj-text color="{THEME['danger']}" font-weight="600">
      Your appointment has been cancelled.
    </mj-text>

    {_details_block(service_name, specialist_name, business_name, scheduled)}
    {reason_section}

    <mj-text>
      Need to reschedule? Pick a new time whenever it suits you.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Cancelled",
        preview_text=f"Appointment cancelled - {business_name}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/book",
        cta_label="Book Again",
    )


def reservation_reminder_template(
    client_name: str,
    service_name: str,
    specialist_name: str,
    business_name: str,
    scheduled: str,
) -> str:
    """Day-before reminder for the client"""
    content = f"""
    <mj-text>
      Hi {escape(client_name)},
    </mj-text>

    <mj-text align="center" font-size="18px" font-weight="600" color="{THEME['warning']}" padding="20px 0">
      ⏰ You have an appointment tomorrow
    </mj-text>

    {_details_block(service_name, specialist_name, business_name, scheduled)}
    """

    return get_base_template(
        title="Appointment Reminder",
        preview_text=f"Reminder: appointment tomorrow with {specialist_name}",
        content_sections=content,
    )


def password_reset_template(name: str, reset_link: str, expires_minutes: int) -> str:
    """Password reset MJML template"""
    content = f"""
    <mj-text>
      Hi {escape(name)},
    </mj-text>

    <mj-text>
      We received a request to reset your password. Use the button below to choose a new one.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      This link expires in {expires_minutes} minutes. If you didn't request a reset, you can ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your Centralia password",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Reset Password",
        footer_text="You're receiving this because a password reset was requested for your Centralia account.",
    )
