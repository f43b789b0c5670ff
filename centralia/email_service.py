"""
Email Service using Resend
Compiles MJML templates to HTML and sends reservation emails
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from . import config
from .email_templates import (
    password_reset_template,
    reservation_cancelled_template,
    reservation_confirmed_template,
    reservation_created_template,
    reservation_reminder_template,
)

logger = logging.getLogger(__name__)

resend.api_key = config.RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not config.RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or config.EMAIL_FROM_ADDRESS,
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
# Reservation emails
# ============================================


async def send_reservation_created_email(
    to: str,
    specialist_name: str,
    client_name: str,
    service_name: str,
    business_name: str,
    scheduled: str,
    notes: Optional[str] = None,
) -> dict:
    """Tell the specialist a new reservation is waiting"""
    mjml_content = reservation_created_template(
        specialist_name=specialist_name,
        client_name=client_name,
        service_name=service_name,
        business_name=business_name,
        scheduled=scheduled,
        notes=notes,
    )
    return await send_email(to=to, subject=f"New Reservation - {client_name}", mjml_content=mjml_content)


async def send_reservation_confirmed_email(
    to: str, client_name: str, service_name: str, specialist_name: str, business_name: str, scheduled: str
) -> dict:
    mjml_content = reservation_confirmed_template(
        client_name=client_name,
        service_name=service_name,
        specialist_name=specialist_name,
        business_name=business_name,
        scheduled=scheduled,
    )
    return await send_email(
        to=to, subject=f"Appointment Confirmed - {specialist_name}", mjml_content=mjml_content
    )


async def send_reservation_cancelled_email(
    to: str,
    client_name: str,
    service_name: str,
    specialist_name: str,
    business_name: str,
    scheduled: str,
    cancellation_reason: Optional[str] = None,
) -> dict:
    mjml_content = reservation_cancelled_template(
        client_name=client_name,
        service_name=service_name,
        specialist_name=specialist_name,
        business_name=business_name,
        scheduled=scheduled,
        cancellation_reason=cancellation_reason,
    )
    return await send_email(
        to=to, subject=f"Appointment Cancelled - {business_name}", mjml_content=mjml_content
    )


async def send_reservation_reminder_email(
    to: str, client_name: str, service_name: str, specialist_name: str, business_name: str, scheduled: str
) -> dict:
    mjml_content = reservation_reminder_template(
        client_name=client_name,
        service_name=service_name,
        specialist_name=specialist_name,
        business_name=business_name,
        scheduled=scheduled,
    )
    return await send_email(
        to=to, subject=f"Reminder: Appointment Tomorrow with {specialist_name}", mjml_content=mjml_content
    )


# ============================================
# Account emails
# ============================================


async def send_password_reset_email(to: str, name: str, reset_link: str) -> dict:
    """Send password reset email"""
    mjml_content = password_reset_template(
        name=name, reset_link=reset_link, expires_minutes=config.PASSWORD_RESET_EXPIRE_MINUTES
    )
    return await send_email(to=to, subject="Reset Your Password - Centralia", mjml_content=mjml_content)
