from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest

from bookmyslot.core.security import ACTOR_ADMIN, ROLE_SUPERUSER, Actor
from bookmyslot.main import app
from bookmyslot.services.admin_auth_service import AdminAuthenticator, GoogleAdminAuthenticator
from tests.utils import clinic_headers


@pytest.fixture
def swap_admin_authenticator():
    original = app.state.admin_authenticator

    def _swap(authenticator):
        app.state.admin_authenticator = authenticator
        return authenticator

    yield _swap
    app.state.admin_authenticator = original


@pytest.mark.asyncio
async def test_signup_login_and_current_actor(client):
    resp = await client.post(
        "/api/auth/signup",
        json={"email": "Owner@Example.com", "password": "owner-password", "name": "Olive Owner", "role": "owner"},
    )
    assert resp.status_code == 200
    assert resp.json()["tokenType"] == "bearer"

    login = await client.post("/api/auth/login", json={"email": "owner@example.com", "password": "owner-password"})
    assert login.status_code == 200
    token = login.json()["accessToken"]
    assert login.json()["expiresIn"] == 24 * 60 * 60

    me = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["kind"] == "user"
    assert me.json()["role"] == "owner"
    assert me.json()["email"] == "owner@example.com"


@pytest.mark.asyncio
async def test_duplicate_signup_and_bad_login(client):
    body = {"email": "pat@example.com", "password": "user-password"}
    assert (await client.post("/api/auth/signup", json=body)).status_code == 200
    assert (await client.post("/api/auth/signup", json=body)).status_code == 409

    resp = await client.post("/api/auth/login", json={"email": "pat@example.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid email or password"}


@pytest.mark.asyncio
async def test_signup_rejects_unknown_role(client):
    resp = await client.post(
        "/api/auth/signup",
        json={"email": "pat@example.com", "password": "user-password", "role": "superuser"},
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "role"


@pytest.mark.asyncio
async def test_current_actor_requires_token(client):
    resp = await client.get("/api/auth/user")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Unauthorized"}
    resp = await client.get("/api/auth/user", headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_clinic_login_and_me(client, make_clinic):
    await make_clinic(name="Acme Dental", username="acme", password="clinic-password")

    resp = await client.post("/api/auth/clinic/login", json={"username": "acme", "password": "clinic-password"})
    assert resp.status_code == 200
    assert resp.json()["clinic"]["name"] == "Acme Dental"

    token = resp.json()["accessToken"]
    me = await client.get("/api/auth/clinic/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["username"] == "acme"

    bad = await client.post("/api/auth/clinic/login", json={"username": "acme", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json() == {"message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_archived_clinic_cannot_log_in(client, make_clinic):
    await make_clinic(username="acme", password="clinic-password", is_archived=True)
    resp = await client.post("/api/auth/clinic/login", json={"username": "acme", "password": "clinic-password"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_archived_clinic_token_is_rejected_by_me(client, make_clinic):
    clinic = await make_clinic(username="acme", is_archived=True)
    resp = await client.get("/api/auth/clinic/me", headers=clinic_headers(clinic))
    assert resp.status_code == 401
    assert resp.json() == {"message": "Clinic not found"}


@pytest.mark.asyncio
async def test_env_admin_login(client):
    resp = await client.post("/api/auth/admin/login", json={"email": "admin@example.com", "password": "admin-password"})
    assert resp.status_code == 200
    token = resp.json()["accessToken"]

    everything = await client.get("/api/clinics/all", headers={"Authorization": f"Bearer {token}"})
    assert everything.status_code == 200

    bad = await client.post("/api/auth/admin/login", json={"email": "admin@example.com", "password": "guess"})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_disabled_admin_login_is_503(client, swap_admin_authenticator):
    swap_admin_authenticator(AdminAuthenticator())

    resp = await client.post("/api/auth/admin/login", json={"email": "admin@example.com", "password": "admin-password"})
    assert resp.status_code == 503
    assert (await client.get("/api/auth/admin/google")).status_code == 503


@pytest.mark.asyncio
async def test_google_admin_callback_redirects_with_token(client, swap_admin_authenticator):
    authenticator = swap_admin_authenticator(GoogleAdminAuthenticator("admin@example.com"))
    authenticator.complete = AsyncMock(
        return_value=Actor(kind=ACTOR_ADMIN, subject="admin", role=ROLE_SUPERUSER, email="admin@example.com")
    )

    resp = await client.get("/api/auth/admin/google/callback", params={"code": "abc"})

    assert resp.status_code == 302
    location = urlparse(resp.headers["location"])
    assert location.path == "/admin"
    token = parse_qs(location.fragment)["access_token"][0]
    me = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["kind"] == "admin"

    authenticator.complete = AsyncMock(return_value=None)
    resp = await client.get("/api/auth/admin/google/callback", params={"code": "abc"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logout_is_stateless(client):
    resp = await client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out"}


@pytest.mark.asyncio
async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    assert (await client.get("/api/health")).json() == {"status": "ok"}
