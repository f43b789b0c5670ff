"""Shared validation utilities"""

import re
from typing import Optional

import pytz

from ..models import WEEKDAYS

HHMM_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
RUC_PATTERN = re.compile(r"^\d{11}$")
BLOOD_PRESSURE_PATTERN = re.compile(r"^\d{2,3}/\d{2,3}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """Keep a leading + and digits; require at least 7 digits"""
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if len(digits) < 7:
        raise ValueError("Phone number must contain at least 7 digits")

    return f"+{digits}" if phone.strip().startswith("+") else digits


def validate_ruc(ruc: str) -> str:
    ruc = (ruc or "").strip()
    if not RUC_PATTERN.match(ruc):
        raise ValueError("RUC must be 11 digits")
    return ruc


def validate_hhmm(value: str) -> str:
    """Validate a wall-clock time in HH:MM format and zero-pad it"""
    value = (value or "").strip()
    if not HHMM_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    hour, minute = value.split(":")
    return f"{int(hour):02d}:{minute}"


def validate_weekday(day: str) -> str:
    day = (day or "").strip().lower()
    if day not in WEEKDAYS:
        raise ValueError(f"Day must be one of: {', '.join(WEEKDAYS)}")
    return day


def validate_timezone(tz_name: str) -> str:
    """Validate an IANA timezone name such as America/Lima"""
    try:
        pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown timezone: {tz_name}") from None
    return tz_name


def validate_blood_pressure(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not BLOOD_PRESSURE_PATTERN.match(value):
        raise ValueError("Blood pressure must be in format XXX/XXX")
    return value
