"""Tests for account registration, login and Google OAuth."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from conftest import auth_headers, make_user

from bookstream.api.endpoints import auth as auth_endpoints
from bookstream.core.config import settings
from bookstream.core.security import create_access_token, decode_token, hash_password, verify_password
from bookstream.models.user import User


def _register(client, email="ada@example.com", password="secret123", **extra):
    return client.post("/api/auth/register", json={"email": email, "password": password, **extra})


class TestSecurity:
    def test_password_hashing(self) -> None:
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_token_round_trip(self) -> None:
        payload = decode_token(create_access_token("8d9a1c2e-0000-4000-8000-000000000000"))
        assert payload["sub"] == "8d9a1c2e-0000-4000-8000-000000000000"
        assert payload["exp"] > payload["iat"]

    def test_garbage_token(self) -> None:
        assert decode_token("not.a.token") is None


class TestRegister:
    def test_creates_account_and_returns_token(self, client) -> None:
        response = _register(client, email="Ada@Example.com", name="  Ada Lovelace ")

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["name"] == "Ada Lovelace"
        assert decode_token(body["token"])["sub"] == body["user"]["id"]

    def test_name_defaults_to_email_prefix(self, client) -> None:
        assert _register(client).json()["user"]["name"] == "ada"

    def test_duplicate_email(self, client) -> None:
        _register(client)
        response = _register(client, email="ADA@example.com")
        assert response.status_code == 400
        assert response.json() == {"message": "User already exists"}

    @pytest.mark.parametrize("payload", [
        {"email": "not-an-email", "password": "secret123"},
        {"email": "ada@example.com", "password": "123"},
        {"email": "ada@example.com"},
    ])
    def test_invalid_payload(self, client, payload) -> None:
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["message"]
        assert response.json()["errors"]


class TestLogin:
    def test_success(self, client) -> None:
        _register(client)
        response = client.post("/api/auth/login", json={"email": "ADA@example.com", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@example.com"
        assert response.json()["token"]

    def test_wrong_password(self, client) -> None:
        _register(client)
        response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials"}

    def test_unknown_user(self, client) -> None:
        response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
        assert response.status_code == 401

    def test_oauth_only_account_cannot_use_password(self, client, db_session) -> None:
        make_user(db_session, email="oauth@example.com")
        response = client.post("/api/auth/login", json={"email": "oauth@example.com", "password": "secret123"})
        assert response.status_code == 401


class TestSession:
    def test_me(self, client, db_session) -> None:
        user = make_user(db_session)
        response = client.get("/api/auth/me", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json()["user"] == {
            "id": str(user.id), "email": user.email, "name": "Reader", "avatar": None,
        }

    def test_me_without_token(self, client) -> None:
        assert client.get("/api/auth/me").status_code == 401

    def test_token_for_deleted_user(self, client, db_session) -> None:
        user = make_user(db_session)
        headers = auth_headers(user)
        db_session.delete(user)
        db_session.commit()

        response = client.get("/api/auth/me", headers=headers)
        assert response.json() == {"message": "Invalid token"}

    def test_logout(self, client, db_session) -> None:
        user = make_user(db_session)
        response = client.post("/api/auth/logout", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}


class TestGoogleOAuth:
    @pytest.fixture
    def oauth_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "google_client_id", "client-id")
        monkeypatch.setattr(settings, "google_client_secret", "client-secret")

    @pytest.fixture
    def google_profile(self, monkeypatch):
        profile = {
            "sub": "google-123",
            "email": "grace@example.com",
            "name": "Grace Hopper",
            "picture": "https://example.com/grace.png",
        }
        monkeypatch.setattr(auth_endpoints, "fetch_google_profile", lambda code: profile)
        return profile

    def test_not_configured(self, client, monkeypatch) -> None:
        monkeypatch.setattr(settings, "google_client_id", "")
        response = client.get("/api/auth/google", follow_redirects=False)
        assert response.status_code == 503

    def test_redirects_to_google(self, client, oauth_settings) -> None:
        response = client.get("/api/auth/google", follow_redirects=False)

        assert response.status_code == 307
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.google.com"
        query = parse_qs(location.query)
        assert query["client_id"] == ["client-id"]
        assert query["response_type"] == ["code"]

    def test_callback_creates_user_and_redirects_with_token(
        self, client, db_session, oauth_settings, google_profile,
    ) -> None:
        response = client.get("/api/auth/callback/google", params={"code": "abc"}, follow_redirects=False)

        assert response.status_code == 307
        location = response.headers["location"]
        assert location.startswith(f"{settings.cors_origins[0]}/auth/callback?token=")
        token = parse_qs(urlparse(location).query)["token"][0]

        user = db_session.query(User).filter(User.email == "grace@example.com").one()
        assert decode_token(token)["sub"] == str(user.id)
        assert user.oauth_provider == "google"
        assert user.oauth_id == "google-123"
        assert user.avatar == "https://example.com/grace.png"
        assert user.password_hash is None

    def test_callback_links_existing_password_account(
        self, client, db_session, oauth_settings, google_profile,
    ) -> None:
        _register(client, email="grace@example.com")

        client.get("/api/auth/callback/google", params={"code": "abc"}, follow_redirects=False)

        users = db_session.query(User).all()
        assert len(users) == 1
        assert users[0].oauth_id == "google-123"
        assert users[0].password_hash is not None

    def test_callback_exchange_failure(self, client, oauth_settings, monkeypatch) -> None:
        def failing(code):
            raise httpx.ConnectError("unreachable")

        monkeypatch.setattr(auth_endpoints, "fetch_google_profile", failing)

        response = client.get("/api/auth/callback/google", params={"code": "abc"}, follow_redirects=False)

        assert response.status_code == 400
        assert response.json() == {"message": "Failed to authenticate with Google."}
