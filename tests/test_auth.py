"""API tests for registration, login, the current-user endpoints and password management."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import auth_headers
from jose import jwt

from centralia import email_service
from centralia.auth import Actor, actor_for
from centralia.email_templates import password_reset_template
from centralia.security_utils import create_access_token, hash_reset_token, verify_jwt_token


def register(client, **overrides):
    payload = {"name": "Ana Torres", "email": "Ana@Example.com", "password": "s3cret-pass"}
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


class TestRegister:
    def test_client_registration_signs_in(self, client):
        response = register(client)

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "ana@example.com"
        assert data["user"]["role"] == "client"
        assert verify_jwt_token(data["access_token"])["sub"] == str(data["user"]["id"])

    def test_owner_registration(self, client):
        assert register(client, role="owner").json()["user"]["role"] == "owner"

    @pytest.mark.parametrize("role", ["admin", "specialist"])
    def test_privileged_roles_rejected(self, client, role):
        assert register(client, role=role).status_code == 422

    def test_duplicate_email(self, client):
        register(client)
        assert register(client, email="ana@example.com").status_code == 409

    @pytest.mark.parametrize(
        "overrides", [{"email": "not-an-email"}, {"password": "short"}, {"name": "A"}, {"phone": "12"}]
    )
    def test_invalid_payload(self, client, overrides):
        assert register(client, **overrides).status_code == 422


class TestLogin:
    def test_valid_credentials(self, client, make_user):
        user = make_user("client", email="login@example.com", password="correct-horse")
        response = client.post("/auth/login", json={"email": "LOGIN@example.com", "password": "correct-horse"})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user.id

    def test_wrong_password(self, client, make_user):
        make_user("client", email="login@example.com", password="correct-horse")
        response = client.post("/auth/login", json={"email": "login@example.com", "password": "battery-staple"})
        assert response.status_code == 401

    def test_unknown_email(self, client):
        response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "whatever1"})
        assert response.status_code == 401

    def test_deactivated_account(self, client, make_user):
        make_user("client", email="gone@example.com", password="correct-horse", is_active=False)
        response = client.post("/auth/login", json={"email": "gone@example.com", "password": "correct-horse"})
        assert response.status_code == 403


class TestCurrentUser:
    def test_me(self, client, make_user):
        user = make_user("owner", name="Olga")
        response = client.get("/auth/me", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json()["name"] == "Olga"

    def test_update_me(self, client, make_user):
        user = make_user("client")
        response = client.patch(
            "/auth/me", json={"name": "  New Name ", "phone": "+51 999-888-777"}, headers=auth_headers(user)
        )
        assert response.status_code == 200
        assert response.json()["name"] == "New Name"
        assert response.json()["phone"] == "+51999888777"

    def test_missing_token(self, client):
        assert client.get("/auth/me").status_code in (401, 403)

    def test_malformed_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer abc"})
        assert response.status_code == 401

    def test_token_signed_with_other_key(self, client, make_user):
        user = make_user("client")
        forged = jwt.encode({"sub": str(user.id), "role": "admin"}, "another-key", algorithm="HS256")
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 401

    def test_token_for_deleted_user(self, client):
        token = create_access_token(4242, "client")
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_deactivated_user_token(self, client, make_user, db_session):
        user = make_user("client")
        headers = auth_headers(user)
        user.is_active = False
        db_session.commit()
        assert client.get("/auth/me", headers=headers).status_code == 401


class TestActor:
    def test_actor_carries_id_and_role_only(self, make_user, make_business):
        owner = make_user("owner")
        make_business(owner=owner)
        assert actor_for(owner) == Actor(id=owner.id, role="owner")


class TestChangePassword:
    def test_changes_password(self, client, make_user):
        user = make_user("client", email="change@example.com", password="old-password")
        response = client.post(
            "/auth/change-password",
            json={"current_password": "old-password", "new_password": "new-password"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        login = client.post("/auth/login", json={"email": "change@example.com", "password": "new-password"})
        assert login.status_code == 200

    def test_wrong_current_password(self, client, make_user):
        user = make_user("client", password="old-password")
        response = client.post(
            "/auth/change-password",
            json={"current_password": "not-it-at-all", "new_password": "new-password"},
            headers=auth_headers(user),
        )
        assert response.status_code == 400

    def test_new_password_too_short(self, client, make_user):
        user = make_user("client", password="old-password")
        response = client.post(
            "/auth/change-password",
            json={"current_password": "old-password", "new_password": "short"},
            headers=auth_headers(user),
        )
        assert response.status_code == 422

    def test_requires_login(self, client):
        response = client.post(
            "/auth/change-password", json={"current_password": "old-password", "new_password": "new-password"}
        )
        assert response.status_code in (401, 403)


@pytest.fixture
def reset_emails(monkeypatch):
    sent = []

    async def fake_send(to, name, reset_link):
        sent.append({"to": to, "name": name, "token": reset_link.rsplit("/", 1)[-1]})
        return {"id": "email"}

    monkeypatch.setattr(email_service, "send_password_reset_email", fake_send)
    return sent


class TestPasswordReset:
    def request_reset(self, client, email="reset@example.com"):
        return client.post("/auth/forgot-password", json={"email": email})

    def test_emails_token_and_stores_only_its_hash(self, client, make_user, db_session, reset_emails):
        user = make_user("client", name="Rita", email="reset@example.com")

        response = self.request_reset(client, "Reset@Example.com")

        assert response.status_code == 200
        assert reset_emails[0]["to"] == "reset@example.com"
        assert reset_emails[0]["name"] == "Rita"
        token = reset_emails[0]["token"]
        assert len(token) == 64

        db_session.refresh(user)
        assert user.reset_password_token == hash_reset_token(token)
        assert user.reset_password_token != token
        assert user.reset_password_expires > datetime.now(timezone.utc).replace(tzinfo=None)

    def test_unknown_email_gets_same_answer(self, client, make_user, reset_emails):
        make_user("client", email="reset@example.com")
        known = self.request_reset(client)
        unknown = self.request_reset(client, "nobody@example.com")

        assert unknown.status_code == 200
        assert unknown.json() == known.json()
        assert len(reset_emails) == 1

    def test_failed_send_clears_token(self, client, make_user, db_session, monkeypatch):
        user = make_user("client", email="reset@example.com")

        async def broken(**kwargs):
            raise RuntimeError("provider down")

        monkeypatch.setattr(email_service, "send_password_reset_email", broken)

        assert self.request_reset(client).status_code == 503
        db_session.refresh(user)
        assert user.reset_password_token is None
        assert user.reset_password_expires is None

    def test_validate_token(self, client, make_user, reset_emails):
        make_user("client", name="Rita", email="reset@example.com")
        self.request_reset(client)

        response = client.get(f"/auth/reset-password/{reset_emails[0]['token']}")

        assert response.status_code == 200
        assert response.json() == {"valid": True, "name": "Rita", "email": "reset@example.com"}

    def test_validate_unknown_token(self, client):
        assert client.get(f"/auth/reset-password/{'0' * 64}").status_code == 400

    def test_reset_sets_new_password_once(self, client, make_user, reset_emails):
        make_user("client", email="reset@example.com", password="forgotten-one")
        self.request_reset(client)
        token = reset_emails[0]["token"]

        response = client.post("/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
        assert response.status_code == 200

        login = client.post("/auth/login", json={"email": "reset@example.com", "password": "brand-new-pass"})
        assert login.status_code == 200
        reused = client.post("/auth/reset-password", json={"token": token, "new_password": "another-pass"})
        assert reused.status_code == 400

    def test_expired_token_rejected(self, client, make_user, db_session, reset_emails):
        user = make_user("client", email="reset@example.com")
        self.request_reset(client)
        user.reset_password_expires = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=1)
        db_session.commit()

        token = reset_emails[0]["token"]
        assert client.get(f"/auth/reset-password/{token}").status_code == 400
        response = client.post("/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
        assert response.status_code == 400

    def test_short_new_password(self, client, make_user, reset_emails):
        make_user("client", email="reset@example.com")
        self.request_reset(client)
        response = client.post(
            "/auth/reset-password", json={"token": reset_emails[0]["token"], "new_password": "short"}
        )
        assert response.status_code == 422

    def test_reset_email_template(self):
        body = password_reset_template("Rita <b>", "http://localhost:3000/reset-password/abc123", 60)
        assert 'href="http://localhost:3000/reset-password/abc123"' in body
        assert "Rita &lt;b&gt;" in body
        assert "60 minutes" in body
