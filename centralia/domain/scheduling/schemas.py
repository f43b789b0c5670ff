"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReservationCreate(BaseModel):
    """Schema for booking a reservation"""

    business_id: int
    specialist_id: int
    service_id: int
    # ISO 8601; parsed by the booking service so malformed values map to invalid_input
    start_time: str
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None


class ClientSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None


class BusinessSummary(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    timezone: str


class SpecialistSummary(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    specialty: str


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration_minutes: int
    price: float


class ReservationResponse(BaseModel):
    """Reservation with related display data"""

    id: int
    client_id: int
    business_id: int
    specialist_id: int
    service_id: int
    start_time: datetime
    end_time: datetime
    status: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    reminder_sent: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[ClientSummary] = None
    business: Optional[BusinessSummary] = None
    specialist: Optional[SpecialistSummary] = None
    service: Optional[ServiceSummary] = None


class BookedSlot(BaseModel):
    start: datetime
    end: datetime


class AvailabilityResponse(BaseModel):
    specialist_id: int
    service_id: int
    day: date
    slot_duration_minutes: int
    available_starts: list[datetime] = Field(default_factory=list)
    booked_slots: list[BookedSlot] = Field(default_factory=list)


class ReminderRunResponse(BaseModel):
    status: str
    message: str
    sent: int
