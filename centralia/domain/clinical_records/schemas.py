"""Clinical record schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.sanitization import validate_and_sanitize_input
from ...shared.validators import validate_blood_pressure


class VitalSigns(BaseModel):
    weight: Optional[float] = Field(None, gt=0, le=500)  # kg
    height: Optional[float] = Field(None, gt=0, le=300)  # cm
    bmi: Optional[float] = Field(None, gt=0, le=150)
    blood_pressure: Optional[str] = None
    heart_rate: Optional[int] = Field(None, ge=20, le=300)
    temperature: Optional[float] = Field(None, ge=30, le=45)  # Celsius

    @field_validator("blood_pressure")
    @classmethod
    def check_blood_pressure(cls, v):
        return validate_blood_pressure(v)


class ClinicalRecordCreate(VitalSigns):
    """Schema for writing a clinical record after an appointment"""

    client_id: int
    # Required for owners and admins; specialists default to their own profile
    specialist_id: Optional[int] = None
    reservation_id: Optional[int] = None
    diseases: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    disability: Optional[str] = Field(None, max_length=500)
    diagnosis: str = Field(..., min_length=1, max_length=5000)
    treatment: str = Field(..., min_length=1, max_length=5000)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("diagnosis", "treatment")
    @classmethod
    def check_required_text(cls, v):
        v = validate_and_sanitize_input(v, max_length=5000)
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("notes", "disability")
    @classmethod
    def check_free_text(cls, v):
        return validate_and_sanitize_input(v, max_length=5000)


class ClinicalRecordUpdate(VitalSigns):
    diseases: Optional[list[str]] = None
    allergies: Optional[list[str]] = None
    medications: Optional[list[str]] = None
    disability: Optional[str] = Field(None, max_length=500)
    diagnosis: Optional[str] = Field(None, min_length=1, max_length=5000)
    treatment: Optional[str] = Field(None, min_length=1, max_length=5000)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("diagnosis", "treatment", "notes", "disability")
    @classmethod
    def check_text(cls, v):
        return validate_and_sanitize_input(v, max_length=5000)


class ClinicalRecordResponse(BaseModel):
    id: int
    client_id: int
    specialist_id: int
    business_id: int
    reservation_id: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    bmi: Optional[float] = None
    blood_pressure: Optional[str] = None
    heart_rate: Optional[int] = None
    temperature: Optional[float] = None
    diseases: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    disability: Optional[str] = None
    diagnosis: str
    treatment: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ClinicalRecordPage(BaseModel):
    records: list[ClinicalRecordResponse]
    pagination: Pagination
