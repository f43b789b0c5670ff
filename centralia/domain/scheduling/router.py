"""Reservation router - FastAPI endpoints for booking and availability"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...services.notification_service import (
    notify_reservation_cancelled,
    notify_reservation_confirmed,
    notify_reservation_created,
)
from ..clinical_records.schemas import ClinicalRecordResponse
from ..clinical_records.service import ClinicalRecordService
from .read_models import reservation_view
from .schemas import (
    AvailabilityResponse,
    BookedSlot,
    ReservationCreate,
    ReservationResponse,
    StatusUpdate,
)
from .service import BookingService, parse_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])

STATUS_NOTIFICATIONS = {
    "confirmed": notify_reservation_confirmed,
    "cancelled": notify_reservation_cancelled,
}


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def get_clinical_record_service(db: Session = Depends(get_db)) -> ClinicalRecordService:
    return ClinicalRecordService(db)


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    data: ReservationCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    """Book a reservation for the current user"""
    reservation = service.create_reservation(
        client_id=actor.id,
        business_id=data.business_id,
        specialist_id=data.specialist_id,
        service_id=data.service_id,
        start_time=data.start_time,
        notes=data.notes,
    )
    view = reservation_view(reservation)
    background_tasks.add_task(notify_reservation_created, view)
    return view


@router.get("", response_model=list[ReservationResponse])
async def list_reservations(
    status: Optional[str] = Query(None),
    specialist: Optional[int] = Query(None),
    start_from: Optional[str] = Query(None, alias="startDate"),
    start_to: Optional[str] = Query(None, alias="endDate"),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    """List reservations visible to the current user, sorted by start time"""
    reservations = service.list_reservations(
        actor, status=status, specialist_id=specialist, start_from=start_from, start_to=start_to
    )
    return [reservation_view(r) for r in reservations]


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    specialist: int = Query(...),
    service_id: int = Query(..., alias="service"),
    date: str = Query(..., description="Calendar day, YYYY-MM-DD, in the business timezone"),
    service: BookingService = Depends(get_booking_service),
):
    """Public endpoint: free start times and booked intervals for a day"""
    day = parse_date(date)
    availability = service.check_availability(specialist, service_id, day)
    return AvailabilityResponse(
        specialist_id=specialist,
        service_id=service_id,
        day=day,
        slot_duration_minutes=availability.slot_duration_minutes,
        available_starts=availability.available_starts,
        booked_slots=[BookedSlot(start=s, end=e) for s, e in availability.booked_slots],
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    return reservation_view(service.get_reservation(reservation_id, actor))


@router.put("/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_id: int,
    data: StatusUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm, cancel, complete or mark a reservation as no-show"""
    reservation = service.update_status(
        reservation_id,
        actor,
        data.status,
        cancellation_reason=data.cancellation_reason,
        notes=data.notes,
    )
    view = reservation_view(reservation)

    notify = STATUS_NOTIFICATIONS.get(reservation.status)
    if notify:
        background_tasks.add_task(notify, view)
    return view


@router.get("/{reservation_id}/clinical-record", response_model=ClinicalRecordResponse)
async def get_reservation_clinical_record(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    records: ClinicalRecordService = Depends(get_clinical_record_service),
):
    """Clinical record written for a reservation"""
    return records.get_by_reservation(reservation_id, actor)
