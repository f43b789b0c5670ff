"""Booking service - Availability, conflict checks and reservation lifecycle"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import HIDE_ELAPSED_SLOTS
from ...errors import (
    Inactive,
    InvalidInput,
    InvalidTransition,
    Mismatch,
    NotFound,
    SlotUnavailable,
    Unauthorized,
)
from ...models import RESERVATION_STATUSES, SLOT_INDEX_NAME, Business, Reservation, Service, Specialist
from .intervals import Interval, candidate_slots, free_slots, normalize_timestamp, working_window
from .repository import ReservationRepository

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 500

# Allowed next states; cancelled, completed and no-show are terminal
TRANSITIONS = {
    "pending": ("confirmed", "cancelled", "no-show"),
    "confirmed": ("cancelled", "completed", "no-show"),
    "cancelled": (),
    "completed": (),
    "no-show": (),
}


@dataclass
class Availability:
    slot_duration_minutes: int
    available_starts: list[datetime]
    # Live reservations touching the day, as (start, end)
    booked_slots: list[Interval] = field(default_factory=list)


def parse_timestamp(value: Union[datetime, str, None], field_name: str = "start_time") -> datetime:
    """Accept a datetime or an ISO 8601 string; return naive UTC without microseconds"""
    if value is None or value == "":
        raise InvalidInput(f"{field_name} is required")

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidInput(f"{field_name} is not a valid ISO 8601 timestamp") from None
    elif not isinstance(value, datetime):
        raise InvalidInput(f"{field_name} must be a timestamp")

    return normalize_timestamp(value)


def parse_date(value: Union[date, str, None]) -> date:
    if value is None or value == "":
        raise InvalidInput("date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInput("Invalid date format. Expected YYYY-MM-DD") from None


def is_slot_collision(error: IntegrityError) -> bool:
    """True when the violated constraint is the live-slot unique index"""
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == SLOT_INDEX_NAME
    # SQLite names the columns instead of the index
    message = str(error.orig)
    return SLOT_INDEX_NAME in message or "reservations.specialist_id, reservations.start_time" in message


def _check_note(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > MAX_NOTE_LENGTH:
        raise InvalidInput(f"{field_name} cannot exceed {MAX_NOTE_LENGTH} characters")
    return value or None


class BookingService:
    """
    Availability and booking engine.

    One instance per request; the only state it holds is the session.
    """

    def __init__(self, db: Session, hide_elapsed_slots: bool = HIDE_ELAPSED_SLOTS):
        self.db = db
        self.repo = ReservationRepository()
        self.hide_elapsed_slots = hide_elapsed_slots

    # ------------------------------------------------------------------
    # Catalog preconditions
    # ------------------------------------------------------------------

    def _load_specialist(self, specialist_id: int) -> Specialist:
        specialist = self.repo.get_specialist(self.db, specialist_id)
        if not specialist:
            raise NotFound("Specialist not found")
        if not specialist.is_active:
            raise Inactive("Specialist is temporarily unavailable")
        return specialist

    def _load_service(self, service_id: int, specialist: Specialist) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFound("Service not found")
        if not service.is_active:
            raise Inactive("Service is temporarily unavailable")
        if service.business_id != specialist.business_id:
            raise Mismatch("Service does not belong to the specialist's business")
        # An empty service list means the specialist offers every service of the business
        offered = {s.id for s in specialist.services}
        if offered and service.id not in offered:
            raise Mismatch("Specialist does not offer this service")
        return service

    def _load_business(self, business_id: int) -> Business:
        business = self.repo.get_business(self.db, business_id)
        if not business:
            raise NotFound("Business not found")
        if not business.is_active:
            raise Inactive("Business is temporarily unavailable")
        return business

    def _ensure_free(self, specialist_id: int, start: datetime, end: datetime) -> None:
        conflicting = self.repo.find_overlapping(self.db, specialist_id, start, end)
        if conflicting:
            logger.warning(
                f"Slot {start.isoformat()}-{end.isoformat()} for specialist {specialist_id} "
                f"collides with reservation {conflicting.id}"
            )
            raise SlotUnavailable("Time slot is already booked")

    # ------------------------------------------------------------------
    # Conflict check
    # ------------------------------------------------------------------

    def check_conflict(
        self,
        specialist_id: int,
        service_id: Optional[int],
        start_time: Union[datetime, str],
        end_time: Union[datetime, str, None] = None,
    ) -> Interval:
        """
        Decide whether [start, end) can be booked for the specialist.

        The end is derived from the service duration when not given.
        Returns the normalized interval; raises InvalidInput, NotFound,
        Inactive, Mismatch or SlotUnavailable. Writes nothing.
        """
        start = parse_timestamp(start_time, "start_time")
        end = parse_timestamp(end_time, "end_time") if end_time is not None else None
        if end is None and service_id is None:
            raise InvalidInput("Either end_time or service_id is required")
        if end is not None and end <= start:
            raise InvalidInput("end_time must be after start_time")

        specialist = self._load_specialist(specialist_id)
        if service_id is not None:
            service = self._load_service(service_id, specialist)
            if end is None:
                end = start + timedelta(minutes=service.duration_minutes)

        self._ensure_free(specialist.id, start, end)
        return start, end

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_reservation(
        self,
        client_id: int,
        business_id: int,
        specialist_id: int,
        service_id: int,
        start_time: Union[datetime, str],
        notes: Optional[str] = None,
    ) -> Reservation:
        """Create a pending reservation if the slot is free at write time"""
        start = parse_timestamp(start_time, "start_time")
        notes = _check_note(notes, "notes")

        business = self._load_business(business_id)
        specialist = self._load_specialist(specialist_id)
        if specialist.business_id != business.id:
            raise Mismatch("Specialist does not belong to this business")
        service = self._load_service(service_id, specialist)

        # Duration is frozen here; later service edits do not move the end
        end = start + timedelta(minutes=service.duration_minutes)
        self._ensure_free(specialist.id, start, end)

        try:
            reservation = self.repo.create_reservation(
                self.db,
                client_id=client_id,
                business_id=business.id,
                specialist_id=specialist.id,
                service_id=service.id,
                start_time=start,
                end_time=end,
                status="pending",
                notes=notes,
            )
        except IntegrityError as e:
            self.db.rollback()
            if not is_slot_collision(e):
                raise
            # Another request took the same start between our check and the insert
            logger.warning(
                f"Unique index rejected reservation for specialist {specialist.id} at {start.isoformat()}"
            )
            raise SlotUnavailable("Time slot is already booked") from None

        logger.info(
            f"Reservation {reservation.id} created: client {client_id}, specialist {specialist.id}, "
            f"{start.isoformat()}-{end.isoformat()}"
        )
        return reservation

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def check_availability(
        self,
        specialist_id: int,
        service_id: int,
        target_date: Union[date, str],
        now: Optional[datetime] = None,
    ) -> Availability:
        """
        Bookable starts for the specialist and service on a calendar day.

        The day is interpreted in the business timezone. Recomputed on every
        call. An empty list means the specialist is off or fully booked.
        """
        day = parse_date(target_date)
        specialist = self._load_specialist(specialist_id)
        business = self._load_business(specialist.business_id)
        service = self._load_service(service_id, specialist)

        tz_name = business.timezone or "UTC"
        duration = timedelta(minutes=service.duration_minutes)

        try:
            tz = pytz.timezone(tz_name or "UTC")
        except pytz.UnknownTimeZoneError:
            tz = pytz.UTC
        day_start = normalize_timestamp(tz.localize(datetime.combine(day, time.min)))
        day_end = normalize_timestamp(tz.localize(datetime.combine(day + timedelta(days=1), time.min)))

        windows = working_window(specialist.availability, day, tz_name)
        range_start = min([day_start] + [w[0] for w in windows])
        range_end = max([day_end] + [w[1] for w in windows])

        booked = self.repo.get_busy_intervals(self.db, specialist.id, range_start, range_end)
        busy = [(r.start_time, r.end_time) for r in booked]

        not_before = None
        if self.hide_elapsed_slots:
            not_before = normalize_timestamp(now or datetime.now(timezone.utc))

        starts = free_slots(candidate_slots(windows, duration), duration, busy, not_before)

        logger.debug(
            f"Availability for specialist {specialist.id}, service {service.id} on {day}: "
            f"{len(starts)} free of {len(windows)} window(s)"
        )
        return Availability(
            slot_duration_minutes=service.duration_minutes,
            available_starts=starts,
            booked_slots=busy,
        )

    # ------------------------------------------------------------------
    # Access and status changes
    # ------------------------------------------------------------------

    def _relation(self, reservation: Reservation, actor: Actor) -> Optional[str]:
        """How the actor relates to the reservation, strongest first"""
        if actor.is_admin:
            return "admin"
        if actor.role == "owner" and reservation.business and reservation.business.owner_id == actor.id:
            return "owner"
        if reservation.specialist and reservation.specialist.user_id == actor.id:
            return "specialist"
        if reservation.client_id == actor.id:
            return "client"
        return None

    def get_reservation(self, reservation_id: int, actor: Actor) -> Reservation:
        reservation = self.repo.get_reservation_detailed(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if self._relation(reservation, actor) is None:
            raise Unauthorized("You do not have access to this reservation")
        return reservation

    def list_reservations(
        self,
        actor: Actor,
        status: Optional[str] = None,
        specialist_id: Optional[int] = None,
        start_from: Union[datetime, str, None] = None,
        start_to: Union[datetime, str, None] = None,
    ) -> list[Reservation]:
        """Reservations visible to the actor, sorted by start time"""
        if status and status not in RESERVATION_STATUSES:
            raise InvalidInput(f"Invalid status. Must be one of: {', '.join(RESERVATION_STATUSES)}")

        range_from = parse_timestamp(start_from, "start_from") if start_from else None
        range_to = parse_timestamp(start_to, "start_to") if start_to else None

        scope = {}
        if actor.is_admin:
            pass
        elif actor.role == "owner":
            scope["business_ids"] = self.repo.get_business_ids_for_owner(self.db, actor.id)
        elif actor.role == "specialist":
            scope["specialist_ids"] = self.repo.get_specialist_ids_for_user(self.db, actor.id)
        else:
            scope["client_id"] = actor.id

        return self.repo.list_reservations(
            self.db,
            status=status,
            specialist_id=specialist_id,
            start_from=range_from,
            start_to=range_to,
            **scope,
        )

    def update_status(
        self,
        reservation_id: int,
        actor: Actor,
        new_status: str,
        cancellation_reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Reservation:
        """
        Move a reservation along its lifecycle.

        Admins, the business owner and the assigned specialist may apply
        any allowed transition; the client who booked may only cancel.
        """
        if new_status not in RESERVATION_STATUSES:
            raise InvalidInput(f"Invalid status. Must be one of: {', '.join(RESERVATION_STATUSES)}")
        cancellation_reason = _check_note(cancellation_reason, "cancellation_reason")
        notes = _check_note(notes, "notes")

        reservation = self.repo.get_reservation_detailed(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")

        relation = self._relation(reservation, actor)
        if relation is None:
            raise Unauthorized("You are not allowed to modify this reservation")

        current = reservation.status
        if new_status not in TRANSITIONS.get(current, ()):
            raise InvalidTransition(f"Cannot change status from {current} to {new_status}")

        if relation == "client" and new_status != "cancelled":
            raise Unauthorized("Clients can only cancel reservations")

        updates = {"status": new_status, "notes": notes}
        if new_status == "cancelled":
            updates["cancellation_reason"] = cancellation_reason

        try:
            changed = self.repo.transition_status(self.db, reservation.id, current, **updates)
        except IntegrityError as e:
            self.db.rollback()
            if not is_slot_collision(e):
                raise
            logger.warning(f"Unique index rejected status change of reservation {reservation.id}")
            raise SlotUnavailable("Time slot is already booked") from None

        self.db.refresh(reservation)
        if not changed:
            # Another request moved the reservation after we read it
            logger.warning(
                f"Reservation {reservation.id} changed from {current} to {reservation.status} "
                f"before {new_status} could be applied"
            )
            raise InvalidTransition(f"Cannot change status from {reservation.status} to {new_status}")

        logger.info(f"Reservation {reservation.id}: {current} -> {new_status} by {relation} {actor.id}")
        return reservation
