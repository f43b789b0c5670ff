from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

USER_ROLES = ("admin", "owner", "specialist", "client")

RESERVATION_STATUSES = ("pending", "confirmed", "cancelled", "completed", "no-show")
# Statuses that hold the specialist's time; everything else frees the slot
BLOCKING_STATUSES = ("pending", "confirmed")
# Partial unique index guarding against two live reservations at one start
SLOT_INDEX_NAME = "uq_reservations_specialist_start_active"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


specialist_services = Table(
    "specialist_services",
    Base.metadata,
    Column("specialist_id", Integer, ForeignKey("specialists.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="client", nullable=False, index=True)  # admin, owner, specialist, client
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    # SHA-256 of the emailed reset token; the raw token is never stored
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    businesses = relationship("Business", back_populates="owner")
    specialist_profiles = relationship("Specialist", back_populates="user")
    reservations = relationship("Reservation", back_populates="client")


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    ruc = Column(String(11), unique=True, nullable=False)  # 11-digit tax id
    address = Column(String(300), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    timezone = Column(String(64), default="UTC", nullable=False)  # IANA name, drives slot generation
    has_premises = Column(Boolean, default=True, nullable=False)
    has_remote_sessions = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="businesses")
    services = relationship("Service", back_populates="business")
    specialists = relationship("Specialist", back_populates="business")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    duration_minutes = Column(Integer, nullable=False)  # 5-480
    price = Column(Float, nullable=False, default=0)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="services")


class Specialist(Base):
    __tablename__ = "specialists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    specialty = Column(String(200), nullable=False)
    license_number = Column(String(100), nullable=True)
    bio = Column(String(1000), nullable=True)
    # [{"day": "monday", "start_time": "09:00", "end_time": "17:00", "is_available": true}, ...]
    availability = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="specialist_profiles")
    business = relationship("Business", back_populates="specialists")
    # Empty means the specialist performs every service of the business
    services = relationship("Service", secondary=specialist_services)
    reservations = relationship("Reservation", back_populates="specialist")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    specialist_id = Column(Integer, ForeignKey("specialists.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)  # naive UTC
    end_time = Column(DateTime, nullable=False)  # start + service duration at booking time
    status = Column(String(20), default="pending", nullable=False, index=True)
    notes = Column(String(500), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User", back_populates="reservations")
    business = relationship("Business")
    specialist = relationship("Specialist", back_populates="reservations")
    service = relationship("Service")
    clinical_record = relationship("ClinicalRecord", back_populates="reservation", uselist=False)

    __table_args__ = (
        Index("ix_reservations_specialist_start", "specialist_id", "start_time"),
        Index("ix_reservations_client_status", "client_id", "status"),
        # Last line of defense against double booking: one live reservation per
        # specialist and start instant
        Index(
            SLOT_INDEX_NAME,
            "specialist_id",
            "start_time",
            unique=True,
            sqlite_where=text("status IN ('pending', 'confirmed')"),
            postgresql_where=text("status IN ('pending', 'confirmed')"),
        ),
    )


class ClinicalRecord(Base):
    __tablename__ = "clinical_records"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # the patient
    specialist_id = Column(Integer, ForeignKey("specialists.id"), nullable=False, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=True, unique=True)
    weight = Column(Float, nullable=True)  # kg
    height = Column(Float, nullable=True)  # cm
    bmi = Column(Float, nullable=True)
    blood_pressure = Column(String(7), nullable=True)  # e.g. 120/80
    heart_rate = Column(Integer, nullable=True)
    temperature = Column(Float, nullable=True)  # Celsius
    diseases = Column(JSON, default=list, nullable=False)
    allergies = Column(JSON, default=list, nullable=False)
    medications = Column(JSON, default=list, nullable=False)
    disability = Column(String(500), nullable=True)
    diagnosis = Column(Text, nullable=False)
    treatment = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User")
    specialist = relationship("Specialist")
    business = relationship("Business")
    reservation = relationship("Reservation", back_populates="clinical_record")
