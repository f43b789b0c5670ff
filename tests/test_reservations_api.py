"""API tests for the /reservations endpoints."""

import pytest
from conftest import auth_headers, at

from centralia import email_service


@pytest.fixture
def sent_emails(monkeypatch):
    """Record outgoing reservation emails instead of calling Resend"""
    sent = []

    def recorder(kind):
        async def _send(to, **kwargs):
            sent.append({"kind": kind, "to": to, **kwargs})
            return {"id": f"email-{len(sent)}"}

        return _send

    for kind in ("created", "confirmed", "cancelled", "reminder"):
        monkeypatch.setattr(email_service, f"send_reservation_{kind}_email", recorder(kind))
    return sent


def booking_payload(clinic, start="2030-01-07T09:00:00Z", **overrides):
    payload = {
        "business_id": clinic["business"].id,
        "specialist_id": clinic["specialist"].id,
        "service_id": clinic["service"].id,
        "start_time": start,
    }
    payload.update(overrides)
    return payload


class TestCreateReservationEndpoint:
    def test_books_for_current_user(self, client, clinic, sent_emails):
        response = client.post(
            "/reservations",
            json=booking_payload(clinic, notes="Back pain"),
            headers=auth_headers(clinic["client"]),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["client_id"] == clinic["client"].id
        assert data["start_time"].startswith("2030-01-07T09:00:00")
        assert data["end_time"].startswith("2030-01-07T10:00:00")
        assert data["specialist"]["name"] == "Dr. Sam"
        assert data["service"]["duration_minutes"] == 60

    def test_specialist_is_notified(self, client, clinic, sent_emails):
        client.post("/reservations", json=booking_payload(clinic), headers=auth_headers(clinic["client"]))

        assert len(sent_emails) == 1
        assert sent_emails[0]["kind"] == "created"
        assert sent_emails[0]["to"] == clinic["specialist_user"].email
        assert sent_emails[0]["client_name"] == "Carla Client"

    def test_failed_notification_does_not_fail_booking(self, client, clinic, monkeypatch):
        async def broken(**kwargs):
            raise RuntimeError("mail provider down")

        monkeypatch.setattr(email_service, "send_email", broken)
        response = client.post(
            "/reservations", json=booking_payload(clinic), headers=auth_headers(clinic["client"])
        )
        assert response.status_code == 201

    def test_overlap_returns_409(self, client, clinic, make_user, sent_emails):
        client.post("/reservations", json=booking_payload(clinic), headers=auth_headers(clinic["client"]))

        response = client.post(
            "/reservations",
            json=booking_payload(clinic, start="2030-01-07T09:30:00Z"),
            headers=auth_headers(make_user("client")),
        )

        assert response.status_code == 409
        assert response.json()["code"] == "slot_unavailable"

    def test_malformed_start_returns_400(self, client, clinic):
        response = client.post(
            "/reservations",
            json=booking_payload(clinic, start="tomorrow morning"),
            headers=auth_headers(clinic["client"]),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"

    def test_inactive_specialist_returns_422(self, client, clinic, db_session):
        clinic["specialist"].is_active = False
        db_session.commit()
        response = client.post(
            "/reservations", json=booking_payload(clinic), headers=auth_headers(clinic["client"])
        )
        assert response.status_code == 422
        assert response.json()["code"] == "inactive"

    def test_unknown_service_returns_404(self, client, clinic):
        response = client.post(
            "/reservations",
            json=booking_payload(clinic, service_id=999),
            headers=auth_headers(clinic["client"]),
        )
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_requires_authentication(self, client, clinic):
        response = client.post("/reservations", json=booking_payload(clinic))
        assert response.status_code in (401, 403)

    def test_garbage_token_rejected(self, client, clinic):
        response = client.post(
            "/reservations", json=booking_payload(clinic), headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401


class TestAvailabilityEndpoint:
    def test_public_and_reports_bookings(self, client, clinic, make_reservation):
        make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(10), status="confirmed")

        response = client.get(
            "/reservations/availability",
            params={"specialist": clinic["specialist"].id, "service": clinic["service"].id, "date": "2030-01-07"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["day"] == "2030-01-07"
        assert data["slot_duration_minutes"] == 60
        assert len(data["available_starts"]) == 7
        assert not any(s.startswith("2030-01-07T10:00") for s in data["available_starts"])
        assert data["booked_slots"][0]["start"].startswith("2030-01-07T10:00:00")
        assert data["booked_slots"][0]["end"].startswith("2030-01-07T11:00:00")

    def test_bad_date(self, client, clinic):
        response = client.get(
            "/reservations/availability",
            params={"specialist": clinic["specialist"].id, "service": clinic["service"].id, "date": "soon"},
        )
        assert response.status_code == 400

    def test_missing_parameters(self, client):
        assert client.get("/reservations/availability").status_code == 422


class TestReservationReads:
    def test_get_own_reservation(self, client, clinic, make_reservation):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))
        response = client.get(f"/reservations/{reservation.id}", headers=auth_headers(clinic["client"]))
        assert response.status_code == 200
        assert response.json()["business"]["name"] == clinic["business"].name

    def test_get_other_clients_reservation(self, client, clinic, make_reservation, make_user):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))
        response = client.get(f"/reservations/{reservation.id}", headers=auth_headers(make_user("client")))
        assert response.status_code == 403
        assert response.json()["code"] == "unauthorized"

    def test_list_sorted_and_filtered(self, client, clinic, make_reservation):
        late = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(15), status="confirmed")
        early = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))
        headers = auth_headers(clinic["owner"])

        listed = client.get("/reservations", headers=headers).json()
        assert [r["id"] for r in listed] == [early.id, late.id]

        confirmed = client.get("/reservations", params={"status": "confirmed"}, headers=headers).json()
        assert [r["id"] for r in confirmed] == [late.id]

        ranged = client.get(
            "/reservations",
            params={"startDate": "2030-01-07T12:00:00Z", "endDate": "2030-01-07T23:59:59Z"},
            headers=headers,
        ).json()
        assert [r["id"] for r in ranged] == [late.id]

    def test_client_only_sees_own(self, client, clinic, make_reservation, make_user):
        other = make_user("client")
        make_reservation(other, clinic["specialist"], clinic["service"], at(9))
        mine = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(11))

        listed = client.get("/reservations", headers=auth_headers(clinic["client"])).json()
        assert [r["id"] for r in listed] == [mine.id]


class TestStatusEndpoint:
    def test_specialist_confirms_and_client_is_notified(self, client, clinic, make_reservation, sent_emails):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))

        response = client.put(
            f"/reservations/{reservation.id}/status",
            json={"status": "confirmed"},
            headers=auth_headers(clinic["specialist_user"]),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert [e["kind"] for e in sent_emails] == ["confirmed"]
        assert sent_emails[0]["to"] == clinic["client"].email

    def test_client_cancels_with_reason(self, client, clinic, make_reservation, sent_emails):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))

        response = client.put(
            f"/reservations/{reservation.id}/status",
            json={"status": "cancelled", "cancellation_reason": "Travelling"},
            headers=auth_headers(clinic["client"]),
        )

        assert response.status_code == 200
        assert response.json()["cancellation_reason"] == "Travelling"
        assert sent_emails[0]["kind"] == "cancelled"
        assert sent_emails[0]["cancellation_reason"] == "Travelling"

    def test_completion_sends_nothing(self, client, clinic, make_reservation, sent_emails):
        reservation = make_reservation(
            clinic["client"], clinic["specialist"], clinic["service"], at(9), status="confirmed"
        )
        response = client.put(
            f"/reservations/{reservation.id}/status",
            json={"status": "completed"},
            headers=auth_headers(clinic["owner"]),
        )
        assert response.status_code == 200
        assert sent_emails == []

    def test_client_cannot_confirm(self, client, clinic, make_reservation):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))
        response = client.put(
            f"/reservations/{reservation.id}/status",
            json={"status": "confirmed"},
            headers=auth_headers(clinic["client"]),
        )
        assert response.status_code == 403

    def test_invalid_transition(self, client, clinic, make_reservation):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))
        response = client.put(
            f"/reservations/{reservation.id}/status",
            json={"status": "completed"},
            headers=auth_headers(clinic["owner"]),
        )
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_unknown_status(self, client, clinic, make_reservation):
        reservation = make_reservation(clinic["client"], clinic["specialist"], clinic["service"], at(9))
        response = client.put(
            f"/reservations/{reservation.id}/status",
            json={"status": "archived"},
            headers=auth_headers(clinic["owner"]),
        )
        assert response.status_code == 400
