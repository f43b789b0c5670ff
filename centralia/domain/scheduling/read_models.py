"""
Reservation read model

Joins client, business, specialist and service display data onto a
reservation. The booking engine only deals in ids; responses and
notification payloads are assembled here so they can be handed to
background tasks without a live session.
"""

from typing import Any, Optional

from ...models import Reservation


def _client_view(reservation: Reservation) -> Optional[dict[str, Any]]:
    client = reservation.client
    if not client:
        return None
    return {"id": client.id, "name": client.name, "email": client.email, "phone": client.phone}


def _business_view(reservation: Reservation) -> Optional[dict[str, Any]]:
    business = reservation.business
    if not business:
        return None
    return {
        "id": business.id,
        "name": business.name,
        "address": business.address,
        "timezone": business.timezone,
    }


def _specialist_view(reservation: Reservation) -> Optional[dict[str, Any]]:
    specialist = reservation.specialist
    if not specialist:
        return None
    user = specialist.user
    return {
        "id": specialist.id,
        "name": user.name if user else None,
        "email": user.email if user else None,
        "specialty": specialist.specialty,
    }


def _service_view(reservation: Reservation) -> Optional[dict[str, Any]]:
    service = reservation.service
    if not service:
        return None
    return {
        "id": service.id,
        "name": service.name,
        "duration_minutes": service.duration_minutes,
        "price": service.price,
    }


def reservation_view(reservation: Reservation) -> dict[str, Any]:
    """Plain-data view of a reservation with related display fields"""
    return {
        "id": reservation.id,
        "client_id": reservation.client_id,
        "business_id": reservation.business_id,
        "specialist_id": reservation.specialist_id,
        "service_id": reservation.service_id,
        "start_time": reservation.start_time,
        "end_time": reservation.end_time,
        "status": reservation.status,
        "notes": reservation.notes,
        "cancellation_reason": reservation.cancellation_reason,
        "reminder_sent": reservation.reminder_sent,
        "created_at": reservation.created_at,
        "updated_at": reservation.updated_at,
        "client": _client_view(reservation),
        "business": _business_view(reservation),
        "specialist": _specialist_view(reservation),
        "service": _service_view(reservation),
    }
