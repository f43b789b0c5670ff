"""
Reservation Notification Service
Emails sent on reservation events. Every function takes a reservation view
(plain data from read_models.reservation_view) and never raises: a failed
notification is logged and must not affect the booking that triggered it.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import pytz

from .. import email_service

logger = logging.getLogger(__name__)


def format_schedule(start: datetime, end: datetime, tz_name: Optional[str]) -> str:
    """Render a naive UTC interval in the business timezone"""
    try:
        tz = pytz.timezone(tz_name or "UTC")
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    local_start = pytz.UTC.localize(start).astimezone(tz)
    local_end = pytz.UTC.localize(end).astimezone(tz)
    return f"{local_start.strftime('%A, %B %d, %Y %H:%M')} - {local_end.strftime('%H:%M')} ({tz.zone})"


def _email_context(view: dict[str, Any]) -> dict[str, str]:
    client = view.get("client") or {}
    specialist = view.get("specialist") or {}
    service = view.get("service") or {}
    business = view.get("business") or {}
    return {
        "client_name": client.get("name") or "Client",
        "specialist_name": specialist.get("name") or "your specialist",
        "service_name": service.get("name") or "Appointment",
        "business_name": business.get("name") or "",
        "scheduled": format_schedule(view["start_time"], view["end_time"], business.get("timezone")),
    }


async def notify_reservation_created(view: dict[str, Any]) -> bool:
    """Tell the assigned specialist about a new pending reservation"""
    specialist_email = (view.get("specialist") or {}).get("email")
    if not specialist_email:
        logger.warning(f"Specialist email not found for reservation {view.get('id')}, skipping notification")
        return False

    try:
        await email_service.send_reservation_created_email(
            to=specialist_email, notes=view.get("notes"), **_email_context(view)
        )
        logger.info(f"✅ Reservation created email sent for reservation {view.get('id')}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send reservation created email for reservation {view.get('id')}: {e}")
        return False


async def notify_reservation_confirmed(view: dict[str, Any]) -> bool:
    client_email = (view.get("client") or {}).get("email")
    if not client_email:
        logger.warning(f"Client email not found for reservation {view.get('id')}, skipping notification")
        return False

    try:
        await email_service.send_reservation_confirmed_email(to=client_email, **_email_context(view))
        logger.info(f"✅ Reservation confirmed email sent for reservation {view.get('id')}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send reservation confirmed email for reservation {view.get('id')}: {e}")
        return False


async def notify_reservation_cancelled(view: dict[str, Any]) -> bool:
    client_email = (view.get("client") or {}).get("email")
    if not client_email:
        logger.warning(f"Client email not found for reservation {view.get('id')}, skipping notification")
        return False

    try:
        await email_service.send_reservation_cancelled_email(
            to=client_email,
            cancellation_reason=view.get("cancellation_reason"),
            **_email_context(view),
        )
        logger.info(f"✅ Reservation cancelled email sent for reservation {view.get('id')}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send reservation cancelled email for reservation {view.get('id')}: {e}")
        return False


async def send_reservation_reminder(view: dict[str, Any]) -> bool:
    """Day-before reminder to the client; True only when the email went out"""
    client_email = (view.get("client") or {}).get("email")
    if not client_email:
        logger.warning(f"Client email not found for reservation {view.get('id')}, skipping reminder")
        return False

    try:
        await email_service.send_reservation_reminder_email(to=client_email, **_email_context(view))
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send reminder for reservation {view.get('id')}: {e}")
        return False
