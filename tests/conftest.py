"""Shared fixtures: in-memory database, API client and record factories."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from centralia.auth import actor_for  # noqa: E402
from centralia.database import Base, get_db  # noqa: E402
from centralia.domain.scheduling.service import BookingService  # noqa: E402
from centralia.main import app  # noqa: E402
from centralia.models import Business, Reservation, Service, Specialist, User  # noqa: E402
from centralia.security_utils import create_access_token, hash_password  # noqa: E402

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)

WEEKDAYS_9_TO_5 = [
    {"day": day, "start_time": "09:00", "end_time": "17:00", "is_available": True}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
]


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """Naive UTC datetime on the given day"""
    return datetime(day.year, day.month, day.day, hour, minute)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    """API client sharing the test session"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def booking(db_session):
    """Booking service with elapsed-slot hiding off, so fixed test dates are stable"""
    return BookingService(db_session, hide_elapsed_slots=False)


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role: str = "client", name: str = None, email: str = None, password: str = "password123", **kw):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            **kw,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_business(db_session, make_user):
    counter = {"n": 0}

    def _make_business(owner: User = None, **kw):
        counter["n"] += 1
        owner = owner or make_user("owner")
        data = {
            "name": f"Clinic {counter['n']}",
            "ruc": f"2060000000{counter['n']}"[-11:],
            "timezone": "UTC",
        }
        data.update(kw)
        business = Business(owner_id=owner.id, **data)
        db_session.add(business)
        db_session.commit()
        db_session.refresh(business)
        return business

    return _make_business


@pytest.fixture
def make_service(db_session):
    def _make_service(business: Business, duration_minutes: int = 60, **kw):
        data = {"name": f"{duration_minutes} min consultation", "price": 50.0}
        data.update(kw)
        service = Service(business_id=business.id, duration_minutes=duration_minutes, **data)
        db_session.add(service)
        db_session.commit()
        db_session.refresh(service)
        return service

    return _make_service


@pytest.fixture
def make_specialist(db_session, make_user):
    def _make_specialist(business: Business, user: User = None, availability=None, services=None, **kw):
        user = user or make_user("specialist")
        specialist = Specialist(
            user_id=user.id,
            business_id=business.id,
            specialty=kw.pop("specialty", "General medicine"),
            availability=WEEKDAYS_9_TO_5 if availability is None else availability,
            **kw,
        )
        specialist.services = services or []
        db_session.add(specialist)
        db_session.commit()
        db_session.refresh(specialist)
        return specialist

    return _make_specialist


@pytest.fixture
def make_reservation(db_session):
    """Insert a reservation row directly, bypassing the booking checks"""

    def _make_reservation(client: User, specialist: Specialist, service: Service, start: datetime, status="pending", **kw):
        reservation = Reservation(
            client_id=client.id,
            business_id=specialist.business_id,
            specialist_id=specialist.id,
            service_id=service.id,
            start_time=start,
            end_time=kw.pop("end_time", None) or start + timedelta(minutes=service.duration_minutes),
            status=status,
            **kw,
        )
        db_session.add(reservation)
        db_session.commit()
        db_session.refresh(reservation)
        return reservation

    return _make_reservation


@pytest.fixture
def clinic(make_user, make_business, make_service, make_specialist):
    """An owner's business with one 60-minute service and one specialist working weekdays 09-17"""
    owner = make_user("owner", name="Olivia Owner")
    business = make_business(owner=owner)
    service = make_service(business, duration_minutes=60, name="Consultation")
    specialist_user = make_user("specialist", name="Dr. Sam")
    specialist = make_specialist(business, user=specialist_user)
    patient = make_user("client", name="Carla Client")
    return {
        "owner": owner,
        "business": business,
        "service": service,
        "specialist": specialist,
        "specialist_user": specialist_user,
        "client": patient,
    }


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


def actor(user: User):
    return actor_for(user)
