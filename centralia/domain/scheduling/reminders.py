"""Reminder sweep for upcoming confirmed reservations"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...config import REMINDER_LEAD_HOURS, REMINDER_WINDOW_HOURS
from ...services.notification_service import send_reservation_reminder
from .intervals import normalize_timestamp
from .read_models import reservation_view
from .repository import ReservationRepository

logger = logging.getLogger(__name__)


async def send_upcoming_reminders(db: Session, now: Optional[datetime] = None) -> int:
    """
    Send reminders for confirmed reservations starting in
    [now + lead, now + lead + window) that have not had one yet.

    A failed send leaves the reservation unmarked and the sweep moves on.
    Returns the number of reminders sent.
    """
    current = normalize_timestamp(now or datetime.now(timezone.utc))
    window_start = current + timedelta(hours=REMINDER_LEAD_HOURS)
    window_end = window_start + timedelta(hours=REMINDER_WINDOW_HOURS)

    repo = ReservationRepository()
    reservations = repo.get_due_reminders(db, window_start, window_end)
    logger.info(f"Found {len(reservations)} reservations needing reminders")

    sent = 0
    for reservation in reservations:
        delivered = await send_reservation_reminder(reservation_view(reservation))
        if not delivered:
            continue
        repo.update_reservation(db, reservation, reminder_sent=True)
        sent += 1
        logger.info(f"Reminder sent for reservation {reservation.id}")

    if sent:
        logger.info(f"Successfully sent {sent} reminders")
    return sent
