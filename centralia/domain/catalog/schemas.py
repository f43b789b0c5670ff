"""Catalog domain schemas - Businesses, services and specialists"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import (
    validate_email,
    validate_hhmm,
    validate_phone,
    validate_ruc,
    validate_timezone,
    validate_weekday,
)

# ============================================================================
# BUSINESSES
# ============================================================================


class BusinessCreate(BaseModel):
    """Schema for registering a business"""

    name: str = Field(..., min_length=2, max_length=200)
    ruc: str
    description: Optional[str] = Field(None, max_length=1000)
    address: Optional[str] = Field(None, max_length=300)
    phone: Optional[str] = None
    email: Optional[str] = None
    timezone: str = "UTC"
    has_premises: bool = True
    has_remote_sessions: bool = False
    # Only honoured for admins; owners always create for themselves
    owner_id: Optional[int] = None

    @field_validator("ruc")
    @classmethod
    def check_ruc(cls, v):
        return validate_ruc(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v)


class BusinessUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    address: Optional[str] = Field(None, max_length=300)
    phone: Optional[str] = None
    email: Optional[str] = None
    timezone: Optional[str] = None
    has_premises: Optional[bool] = None
    has_remote_sessions: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        if v is None:
            return v
        return validate_timezone(v)


class BusinessResponse(BaseModel):
    id: int
    owner_id: int
    name: str
    ruc: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    timezone: str
    has_premises: bool
    has_remote_sessions: bool
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# SERVICES
# ============================================================================


class ServiceCreate(BaseModel):
    business_id: int
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    duration_minutes: int = Field(..., ge=5, le=480)
    price: float = Field(..., ge=0)
    category: Optional[str] = Field(None, max_length=100)


class ServiceUpdate(BaseModel):
    """Duration changes only affect reservations booked afterwards"""

    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    duration_minutes: Optional[int] = Field(None, ge=5, le=480)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class ServiceResponse(BaseModel):
    id: int
    business_id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: float
    category: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# SPECIALISTS
# ============================================================================


class AvailabilityEntry(BaseModel):
    """One weekly working block, wall-clock times in the business timezone"""

    day: str
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("day")
    @classmethod
    def check_day(cls, v):
        return validate_weekday(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, v):
        return validate_hhmm(v)

    @model_validator(mode="after")
    def check_order(self):
        # Zero-padded HH:MM strings compare chronologically
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SpecialistCreate(BaseModel):
    business_id: int
    user_id: int
    specialty: str = Field(..., min_length=2, max_length=200)
    license_number: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    availability: list[AvailabilityEntry] = Field(default_factory=list)
    service_ids: list[int] = Field(default_factory=list)


class SpecialistUpdate(BaseModel):
    specialty: Optional[str] = Field(None, min_length=2, max_length=200)
    license_number: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    availability: Optional[list[AvailabilityEntry]] = None
    service_ids: Optional[list[int]] = None
    is_active: Optional[bool] = None


class SpecialistResponse(BaseModel):
    id: int
    user_id: int
    business_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    specialty: str
    license_number: Optional[str] = None
    bio: Optional[str] = None
    availability: list[AvailabilityEntry] = Field(default_factory=list)
    service_ids: list[int] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[datetime] = None


class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
