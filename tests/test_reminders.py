"""Tests for the day-before reminder sweep, its cron trigger and the worker wiring."""

import asyncio
from datetime import datetime

import pytest
from conftest import at

from centralia import config, email_service
from centralia.domain.scheduling.reminders import send_upcoming_reminders
from centralia.services.notification_service import format_schedule
from centralia.worker import WorkerSettings, get_redis_settings, send_reminders_task

# Reservations at 2030-01-07 09:00 UTC fall in the window opened by this instant
SWEEP_AT = datetime(2030, 1, 6, 9, 0)


@pytest.fixture
def reminder_emails(monkeypatch):
    sent = []

    async def fake_send(to, **kwargs):
        sent.append({"to": to, **kwargs})
        return {"id": "email"}

    monkeypatch.setattr(email_service, "send_reservation_reminder_email", fake_send)
    return sent


def sweep(db_session, now=SWEEP_AT):
    return asyncio.run(send_upcoming_reminders(db_session, now=now))


class TestSendUpcomingReminders:
    def test_only_confirmed_reservations_inside_window(self, db_session, clinic, make_reservation, reminder_emails):
        def reserve(start, status="confirmed"):
            return make_reservation(clinic["client"], clinic["specialist"], clinic["service"], start, status=status)

        due = reserve(at(9))
        due_late = reserve(at(9, 59))
        reserve(at(8, 59))
        reserve(at(10))
        reserve(at(9, 30), status="pending")

        assert sweep(db_session) == 2
        assert len(reminder_emails) == 2

        db_session.refresh(due)
        db_session.refresh(due_late)
        assert due.reminder_sent is True
        assert due_late.reminder_sent is True

    def test_reminder_content(self, db_session, clinic, make_reservation, reminder_emails):
        make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9), status="confirmed")

        sweep(db_session)

        email = reminder_emails[0]
        assert email["to"] == clinic["client"].email
        assert email["client_name"] == "Carla Client"
        assert email["specialist_name"] == "Dr. Sam"
        assert email["service_name"] == "Consultation"
        assert "09:00" in email["scheduled"]

    def test_each_reservation_reminded_once(self, db_session, clinic, make_reservation, reminder_emails):
        make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9), status="confirmed")

        assert sweep(db_session) == 1
        assert sweep(db_session, now=datetime(2030, 1, 6, 8, 30)) == 0
        assert len(reminder_emails) == 1

    def test_failed_send_leaves_reservation_unmarked(self, db_session, clinic, make_reservation, monkeypatch):
        reservation = make_reservation(
            clinic["client"], clinic["specialist"], clinic["service"], at(9), status="confirmed"
        )

        async def broken(to, **kwargs):
            raise RuntimeError("provider timeout")

        monkeypatch.setattr(email_service, "send_reservation_reminder_email", broken)

        assert sweep(db_session) == 0
        db_session.refresh(reservation)
        assert reservation.reminder_sent is False

    def test_failure_does_not_stop_the_sweep(self, db_session, clinic, make_reservation, make_user, monkeypatch):
        unlucky = make_user("client", email="bounce@example.com")
        make_reservation(unlucky, clinic["specialist"], clinic["service"], at(9), status="confirmed")
        lucky = make_reservation(
            clinic["client"], clinic["specialist"], clinic["service"], at(9, 30), end_time=at(10, 30),
            status="confirmed",
        )

        async def picky(to, **kwargs):
            if to == "bounce@example.com":
                raise RuntimeError("mailbox full")
            return {"id": "email"}

        monkeypatch.setattr(email_service, "send_reservation_reminder_email", picky)

        assert sweep(db_session) == 1
        db_session.refresh(lucky)
        assert lucky.reminder_sent is True

    def test_nothing_due(self, db_session, reminder_emails):
        assert sweep(db_session) == 0
        assert reminder_emails == []


class TestFormatSchedule:
    def test_rendered_in_business_timezone(self):
        text = format_schedule(at(14), at(15), "America/Lima")
        assert "09:00 - 10:00" in text
        assert "America/Lima" in text

    def test_unknown_timezone_falls_back_to_utc(self):
        assert "(UTC)" in format_schedule(at(14), at(15), "Nowhere/Land")


class TestCronEndpoint:
    def test_requires_secret_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(config, "CRON_SECRET", "s3cret")

        assert client.post("/cron/send-reminders").status_code == 401
        assert client.post("/cron/send-reminders", headers={"X-Cron-Secret": "wrong"}).status_code == 401

    def test_runs_sweep(self, client, monkeypatch, reminder_emails):
        monkeypatch.setattr(config, "CRON_SECRET", "s3cret")

        response = client.post("/cron/send-reminders", headers={"X-Cron-Secret": "s3cret"})

        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Reminders sent successfully", "sent": 0}


class TestWorker:
    def test_redis_url_parsed(self, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "rediss://default:pw@cache.example.com:6380")
        settings = get_redis_settings()
        assert settings.host == "cache.example.com"
        assert settings.port == 6380
        assert settings.password == "pw"
        assert settings.ssl is True

    def test_hourly_reminder_job_registered(self):
        assert send_reminders_task in WorkerSettings.functions
        assert len(WorkerSettings.cron_jobs) == 1
