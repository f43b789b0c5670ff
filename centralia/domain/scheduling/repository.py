"""Reservation repository - Database operations for reservations"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import BLOCKING_STATUSES, Business, Reservation, Service, Specialist


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def get_reservation_detailed(db: Session, reservation_id: int) -> Optional[Reservation]:
        """Get a reservation with client, business, specialist and service loaded"""
        return (
            db.query(Reservation)
            .options(
                joinedload(Reservation.client),
                joinedload(Reservation.business),
                joinedload(Reservation.specialist).joinedload(Specialist.user),
                joinedload(Reservation.service),
            )
            .filter(Reservation.id == reservation_id)
            .first()
        )

    @staticmethod
    def find_overlapping(
        db: Session, specialist_id: int, start_time: datetime, end_time: datetime
    ) -> Optional[Reservation]:
        """First live reservation of the specialist overlapping [start_time, end_time)"""
        return (
            db.query(Reservation)
            .filter(
                Reservation.specialist_id == specialist_id,
                Reservation.status.in_(BLOCKING_STATUSES),
                Reservation.start_time < end_time,
                Reservation.end_time > start_time,
            )
            .order_by(Reservation.start_time)
            .first()
        )

    @staticmethod
    def get_busy_intervals(
        db: Session, specialist_id: int, range_start: datetime, range_end: datetime
    ) -> list[Reservation]:
        """Live reservations of the specialist touching [range_start, range_end)"""
        return (
            db.query(Reservation)
            .filter(
                Reservation.specialist_id == specialist_id,
                Reservation.status.in_(BLOCKING_STATUSES),
                Reservation.start_time < range_end,
                Reservation.end_time > range_start,
            )
            .order_by(Reservation.start_time)
            .all()
        )

    @staticmethod
    def list_reservations(
        db: Session,
        client_id: Optional[int] = None,
        specialist_ids: Optional[list[int]] = None,
        business_ids: Optional[list[int]] = None,
        status: Optional[str] = None,
        specialist_id: Optional[int] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
    ) -> list[Reservation]:
        """List reservations sorted by start time; None filters are not applied"""
        query = db.query(Reservation)

        if client_id is not None:
            query = query.filter(Reservation.client_id == client_id)
        if specialist_ids is not None:
            query = query.filter(Reservation.specialist_id.in_(specialist_ids))
        if business_ids is not None:
            query = query.filter(Reservation.business_id.in_(business_ids))
        if status:
            query = query.filter(Reservation.status == status)
        if specialist_id is not None:
            query = query.filter(Reservation.specialist_id == specialist_id)
        if start_from is not None:
            query = query.filter(Reservation.start_time >= start_from)
        if start_to is not None:
            query = query.filter(Reservation.start_time <= start_to)

        return query.order_by(Reservation.start_time.asc(), Reservation.id.asc()).all()

    @staticmethod
    def create_reservation(db: Session, **reservation_data) -> Reservation:
        """
        Insert and commit a reservation.

        Raises sqlalchemy IntegrityError when the partial unique index on
        (specialist_id, start_time) rejects the row; the caller rolls back.
        """
        reservation = Reservation(**reservation_data)
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    @staticmethod
    def transition_status(db: Session, reservation_id: int, current_status: str, **updates) -> int:
        """
        Compare-and-set update: only applies while the row still has
        current_status. Returns the number of rows changed (0 or 1).
        """
        values = {key: value for key, value in updates.items() if value is not None}
        changed = (
            db.query(Reservation)
            .filter(Reservation.id == reservation_id, Reservation.status == current_status)
            .update(values, synchronize_session=False)
        )
        db.commit()
        return changed

    @staticmethod
    def update_reservation(db: Session, reservation: Reservation, **updates) -> Reservation:
        for key, value in updates.items():
            if value is not None and hasattr(reservation, key):
                setattr(reservation, key, value)

        db.commit()
        db.refresh(reservation)
        return reservation

    @staticmethod
    def get_due_reminders(db: Session, window_start: datetime, window_end: datetime) -> list[Reservation]:
        """Confirmed reservations starting in [window_start, window_end) without a reminder"""
        return (
            db.query(Reservation)
            .filter(
                Reservation.status == "confirmed",
                Reservation.reminder_sent.is_(False),
                Reservation.start_time >= window_start,
                Reservation.start_time < window_end,
            )
            .order_by(Reservation.start_time)
            .all()
        )

    # Catalog lookups used by the booking engine (read-only)

    @staticmethod
    def get_specialist(db: Session, specialist_id: int) -> Optional[Specialist]:
        return db.query(Specialist).filter(Specialist.id == specialist_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_business(db: Session, business_id: int) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_specialist_ids_for_user(db: Session, user_id: int) -> list[int]:
        rows = db.query(Specialist.id).filter(Specialist.user_id == user_id).all()
        return [row[0] for row in rows]

    @staticmethod
    def get_business_ids_for_owner(db: Session, owner_id: int) -> list[int]:
        rows = db.query(Business.id).filter(Business.owner_id == owner_id).all()
        return [row[0] for row in rows]
