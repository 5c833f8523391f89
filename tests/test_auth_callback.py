from urllib.parse import parse_qs, urlsplit

import pytest
from jose import jwt
from sqlalchemy.exc import SQLAlchemyError

import routers.auth as auth_router
import services.identity as identity_service
from core.config import settings
from core.security import ALGORITHM
from models.profile import Profile
from services.oauth import OAuthError, safe_redirect_path

GOOGLE_USER = {
    "id": "1077",
    "email": "jane.doe@gmail.com",
    "given_name": "Jane",
    "family_name": "Doe",
    "picture": "https://lh3.googleusercontent.com/jane",
}


@pytest.fixture()
def google_ok(monkeypatch):
    async def fake_exchange(code, redirect_uri):
        assert code == "good-code"
        assert redirect_uri.endswith("/auth/callback")
        return dict(GOOGLE_USER)

    monkeypatch.setattr(auth_router, "exchange_code_for_user", fake_exchange)


def _session_sub(resp) -> str:
    token = resp.cookies.get(settings.SESSION_COOKIE_NAME)
    return jwt.decode(token, settings.SESSION_SECRET, algorithms=[ALGORITHM])["sub"]


@pytest.mark.parametrize(
    "target, expected",
    [
        ("/findwork", "/findwork"),
        ("%2Ftravel%3Ftab%3D1", "/travel?tab=1"),
        ("https://evil.example.com/", "/"),
        ("//evil.example.com", "/"),
        ("dashboard", "/"),
        (None, "/"),
    ],
)
def test_only_relative_redirects_are_honoured(target, expected):
    assert safe_redirect_path(target) == expected


def test_oauth_start_rejects_unknown_provider(client):
    resp = client.get("/api/auth/oauth", params={"provider": "myspace"}, follow_redirects=False)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid or unsupported provider"}


def test_oauth_start_redirects_to_google(client):
    resp = client.get(
        "/api/auth/oauth",
        params={"provider": "google", "redirectTo": "/findwork"},
        follow_redirects=False,
    )

    assert resp.status_code in (302, 307)
    location = urlsplit(resp.headers["location"])
    query = parse_qs(location.query)
    assert location.netloc == "accounts.google.com"
    assert query["client_id"] == [settings.GOOGLE_CLIENT_ID]
    assert query["state"] == ["%2Ffindwork"]


def test_first_sign_in_creates_profile_and_goes_to_setup(client, run, google_ok):
    resp = client.get(
        "/auth/callback",
        params={"code": "good-code", "state": "%2Ffindwork"},
        follow_redirects=False,
    )

    assert resp.headers["location"] == "/profile-setup"
    assert _session_sub(resp) == "google_1077"
    profile = run(lambda db: db.get(Profile, "google_1077"))
    assert profile.email == "jane.doe@gmail.com"
    assert profile.is_profile_completed is False


def test_incomplete_profile_goes_to_setup(client, make_profile, google_ok):
    make_profile("google_1077", "jane_doe", is_profile_completed=False)
    resp = client.get("/auth/callback", params={"code": "good-code", "state": "%2Ffindwork"}, follow_redirects=False)
    assert resp.headers["location"] == "/profile-setup"


def test_completed_profile_goes_to_requested_page(client, make_profile, google_ok):
    make_profile("google_1077", "jane_doe")
    resp = client.get("/auth/callback", params={"code": "good-code", "state": "%2Ffindwork"}, follow_redirects=False)

    assert resp.headers["location"] == "/findwork"
    session = client.get("/auth/session", headers={"Authorization": f"Bearer {resp.cookies.get(settings.SESSION_COOKIE_NAME)}"})
    assert session.json()["next"] == "/"


def test_provider_error_is_forwarded(client):
    resp = client.get("/auth/callback", params={"error": "access_denied"}, follow_redirects=False)
    assert resp.headers["location"] == "/auth?error=access_denied"


def test_missing_code(client):
    resp = client.get("/auth/callback", follow_redirects=False)
    assert resp.headers["location"] == "/auth?error=missing_authorization_code"


def test_token_exchange_failure(client, monkeypatch):
    async def failing_exchange(code, redirect_uri):
        raise OAuthError("token_exchange_failed")

    monkeypatch.setattr(auth_router, "exchange_code_for_user", failing_exchange)
    resp = client.get("/auth/callback", params={"code": "bad"}, follow_redirects=False)

    assert resp.headers["location"] == "/auth?error=token_exchange_failed"
    assert settings.SESSION_COOKIE_NAME not in resp.cookies


def test_unexpected_failure_is_generic(client, monkeypatch):
    async def exploding_exchange(code, redirect_uri):
        raise KeyError("boom")

    monkeypatch.setattr(auth_router, "exchange_code_for_user", exploding_exchange)
    resp = client.get("/auth/callback", params={"code": "x"}, follow_redirects=False)
    assert resp.headers["location"] == "/auth?error=callback_processing_failed"


def test_logout_clears_cookie(client):
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert f'{settings.SESSION_COOKIE_NAME}=""' in resp.headers["set-cookie"]


def test_bootstrap_failure_recovers_at_profile_setup(client, run, google_ok, monkeypatch):
    real_bootstrap = identity_service.bootstrap_profile

    async def failing_bootstrap(*args, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(identity_service, "bootstrap_profile", failing_bootstrap)
    resp = client.get("/auth/callback", params={"code": "good-code"}, follow_redirects=False)

    assert resp.headers["location"] == "/profile-setup"
    assert run(lambda db: db.get(Profile, "google_1077")) is None

    monkeypatch.setattr(identity_service, "bootstrap_profile", real_bootstrap)
    headers = {"Authorization": f"Bearer {resp.cookies.get(settings.SESSION_COOKIE_NAME)}"}
    session = client.get("/auth/session", headers=headers).json()
    assert session["profile_id"] == "google_1077"
    assert session["next"] == "/profile-setup"

    setup = client.post(
        "/profile/setup",
        data={"username": "jane_doe", "first_name": "Jane", "last_name": "Doe", "user_type": "business_owner"},
        headers=headers,
    )

    assert setup.status_code == 200, setup.text
    body = setup.json()
    assert body["id"] == "google_1077"
    assert body["email"] == "jane.doe@gmail.com"
    assert body["is_profile_completed"] is True


def test_profile_lookup_failure_returns_to_sign_in(client, google_ok, monkeypatch):
    async def failing_lookup(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(auth_router, "reconcile_sign_in", failing_lookup)
    resp = client.get("/auth/callback", params={"code": "good-code"}, follow_redirects=False)

    assert resp.headers["location"] == "/auth?error=profile_lookup_failed"
    assert settings.SESSION_COOKIE_NAME not in resp.cookies
