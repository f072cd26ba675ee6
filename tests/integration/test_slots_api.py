import pytest

from bookmyslot.models.user import ROLE_OWNER
from tests.utils import clinic_headers, user_headers


async def _create(client, headers, start="2025-03-10T09:00:00Z", end="2025-03-10T10:00:00Z"):
    return await client.post("/api/slots", json={"startTime": start, "endTime": end}, headers=headers)


@pytest.mark.asyncio
async def test_owner_creates_and_lists_slots(client, make_user):
    owner = await make_user(email="owner@example.com", role=ROLE_OWNER)
    await _create(client, user_headers(owner), start="2025-03-11T09:00:00Z", end="2025-03-11T10:00:00Z")
    resp = await _create(client, user_headers(owner))

    assert resp.status_code == 201
    slot = resp.json()
    assert slot["ownerId"] == owner.id
    assert slot["isBooked"] is False
    assert slot["maxBookings"] == 3

    listed = (await client.get("/api/slots", params={"ownerId": owner.id})).json()
    assert [s["startTime"] for s in listed] == ["2025-03-10T09:00:00", "2025-03-11T09:00:00"]
    on_day = (await client.get("/api/slots", params={"date": "2025-03-11"})).json()
    assert len(on_day) == 1


@pytest.mark.asyncio
async def test_clinic_slots_carry_clinic_identity(client, make_clinic):
    clinic = await make_clinic(name="Acme Dental", username="acme")

    resp = await _create(client, clinic_headers(clinic))

    assert resp.status_code == 201
    assert resp.json()["clinicId"] == clinic.id
    assert resp.json()["clinicName"] == "Acme Dental"
    listed = (await client.get("/api/slots", params={"clinicId": clinic.id})).json()
    assert len(listed) == 1


@pytest.mark.asyncio
async def test_customers_cannot_create_slots(client, make_user):
    customer = await make_user()
    resp = await _create(client, user_headers(customer))
    assert resp.status_code == 403
    assert (await _create(client, {})).status_code == 401


@pytest.mark.asyncio
async def test_end_must_follow_start(client, make_user):
    owner = await make_user(role=ROLE_OWNER)
    resp = await _create(client, user_headers(owner), start="2025-03-10T10:00:00Z", end="2025-03-10T09:00:00Z")
    assert resp.status_code == 400
    assert resp.json() == {"message": "End time must be after start time", "field": "endTime"}


@pytest.mark.asyncio
async def test_only_owner_deletes_slot(client, make_user):
    owner = await make_user(email="owner@example.com", role=ROLE_OWNER)
    intruder = await make_user(email="intruder@example.com", role=ROLE_OWNER)
    slot = (await _create(client, user_headers(owner))).json()

    assert (await client.delete(f"/api/slots/{slot['id']}", headers=user_headers(intruder))).status_code == 403
    assert (await client.delete(f"/api/slots/{slot['id']}", headers=user_headers(owner))).status_code == 204
    assert (await client.delete(f"/api/slots/{slot['id']}", headers=user_headers(owner))).status_code == 404


@pytest.mark.asyncio
async def test_deleting_slot_removes_its_bookings(client, make_user):
    owner = await make_user(email="owner@example.com", role=ROLE_OWNER)
    customer = await make_user(email="customer@example.com")
    slot = (await _create(client, user_headers(owner))).json()
    await client.post(
        "/api/bookings",
        json={"slotId": slot["id"], "customerName": "Cus Tomer", "customerPhone": "555"},
        headers=user_headers(customer),
    )

    await client.delete(f"/api/slots/{slot['id']}", headers=user_headers(owner))

    assert (await client.get("/api/bookings", headers=user_headers(customer))).json() == []


@pytest.mark.asyncio
async def test_cancelled_slot_cannot_be_booked(client, make_clinic, make_user):
    clinic = await make_clinic(username="acme")
    customer = await make_user()
    slot = (await _create(client, clinic_headers(clinic))).json()

    resp = await client.patch(f"/api/slots/{slot['id']}/cancel", headers=clinic_headers(clinic))
    assert resp.status_code == 200
    assert resp.json()["isCancelled"] is True

    resp = await client.post(
        "/api/bookings",
        json={"slotId": slot["id"], "customerName": "Cus Tomer", "customerPhone": "555"},
        headers=user_headers(customer),
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Slot has been cancelled"}
