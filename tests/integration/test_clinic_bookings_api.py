import pytest
from sqlalchemy import select

from bookmyslot.models.slot import Slot
from tests.utils import clinic_headers, doctor_headers, public_booking_body, user_headers


async def _book(client, clinic_id, **overrides) -> dict:
    resp = await client.post("/api/public/bookings", json=public_booking_body(clinic_id, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()["booking"]


@pytest.mark.asyncio
async def test_clinic_lists_only_its_own_bookings(client, make_clinic):
    acme = await make_clinic(name="Acme Dental", username="acme")
    other = await make_clinic(name="Bright Smiles", username="bright")
    await _book(client, acme.id)
    await _book(client, other.id)

    resp = await client.get("/api/clinic/bookings", headers=clinic_headers(acme))

    assert resp.status_code == 200
    bookings = resp.json()
    assert len(bookings) == 1
    assert bookings[0]["slot"]["clinicName"] == "Acme Dental"


@pytest.mark.asyncio
async def test_doctor_can_list_clinic_bookings(client, make_clinic):
    clinic = await make_clinic(username="acme", doctors=[{"name": "Dr. Ada", "email": "ada@example.com"}])
    await _book(client, clinic.id)

    resp = await client.get("/api/clinic/bookings", headers=doctor_headers(clinic, "ada@example.com"))

    assert resp.status_code == 200
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_listing_requires_clinic_session(client, make_clinic, make_user):
    user = await make_user()
    assert (await client.get("/api/clinic/bookings")).status_code == 401
    resp = await client.get("/api/clinic/bookings", headers=user_headers(user))
    assert resp.status_code == 401
    assert resp.json() == {"message": "Unauthorized - Clinic login required"}


@pytest.mark.asyncio
async def test_cancel_deletes_booking_and_implicit_slot(client, make_clinic, session_maker):
    clinic = await make_clinic(username="acme")
    booking = await _book(client, clinic.id)

    resp = await client.delete(f"/api/clinic/bookings/{booking['id']}", headers=clinic_headers(clinic))

    assert resp.status_code == 200
    assert resp.json() == {"message": "Booking cancelled successfully"}
    assert (await client.get("/api/clinic/bookings", headers=clinic_headers(clinic))).json() == []
    async with session_maker() as session:
        assert (await session.execute(select(Slot).where(Slot.id == booking["slotId"]))).first() is None

    # The freed seat can be booked again
    await _book(client, clinic.id)


@pytest.mark.asyncio
async def test_cancel_frees_clinic_published_slot(client, make_clinic, make_user):
    clinic = await make_clinic(username="acme")
    customer = await make_user()
    slot = (
        await client.post(
            "/api/slots",
            json={"startTime": "2025-03-10T09:00:00Z", "endTime": "2025-03-10T09:30:00Z"},
            headers=clinic_headers(clinic),
        )
    ).json()
    booking = (
        await client.post(
            "/api/bookings",
            json={"slotId": slot["id"], "customerName": "Cus Tomer", "customerPhone": "555"},
            headers=user_headers(customer),
        )
    ).json()

    resp = await client.delete(f"/api/clinic/bookings/{booking['id']}", headers=clinic_headers(clinic))

    assert resp.status_code == 200
    slots = (await client.get("/api/slots", params={"clinicId": clinic.id})).json()
    assert [(s["id"], s["isBooked"]) for s in slots] == [(slot["id"], False)]


@pytest.mark.asyncio
async def test_cancel_other_clinics_booking_is_403(client, make_clinic):
    acme = await make_clinic(name="Acme Dental", username="acme")
    other = await make_clinic(name="Bright Smiles", username="bright")
    booking = await _book(client, acme.id)

    resp = await client.delete(f"/api/clinic/bookings/{booking['id']}", headers=clinic_headers(other))

    assert resp.status_code == 403
    assert (await client.delete("/api/clinic/bookings/999", headers=clinic_headers(acme))).status_code == 404


@pytest.mark.asyncio
async def test_doctor_cannot_cancel(client, make_clinic):
    clinic = await make_clinic(username="acme", doctors=[{"name": "Dr. Ada", "email": "ada@example.com"}])
    booking = await _book(client, clinic.id)

    resp = await client.delete(f"/api/clinic/bookings/{booking['id']}", headers=doctor_headers(clinic, "ada@example.com"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_assign_doctor(client, make_clinic):
    clinic = await make_clinic(username="acme", doctors=[{"name": "Dr. Ada", "email": "ada@example.com"}])
    booking = await _book(client, clinic.id)

    resp = await client.patch(
        f"/api/clinic/bookings/{booking['id']}/assign-doctor",
        json={"doctorName": "Dr. Ada"},
        headers=clinic_headers(clinic),
    )
    assert resp.status_code == 200
    assert resp.json()["assignedDoctor"] == "Dr. Ada"

    resp = await client.patch(
        f"/api/clinic/bookings/{booking['id']}/assign-doctor",
        json={"doctorName": "Dr. Who"},
        headers=clinic_headers(clinic),
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "doctorName"


@pytest.mark.asyncio
async def test_archived_clinic_session_is_rejected(client, make_clinic):
    clinic = await make_clinic(username="acme", is_archived=True)
    resp = await client.get("/api/clinic/bookings", headers=clinic_headers(clinic))
    assert resp.status_code == 401
