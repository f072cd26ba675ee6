import pytest

from bookmyslot.core.errors import ConflictError, NotFoundError, ValidationFailedError
from bookmyslot.core.security import create_invite_token
from bookmyslot.models.clinic import Clinic, ClinicCreate, ClinicUpdate, DoctorEntry
from bookmyslot.services.clinic_service import (
    authenticate_clinic,
    authenticate_doctor,
    clinic_doctors,
    create_clinic,
    create_doctor_invite,
    list_clinics,
    resolve_invite,
    set_archived,
    setup_doctor_password,
    update_clinic,
)


def _create(**overrides) -> ClinicCreate:
    data = {
        "name": "Acme Dental",
        "username": "acme",
        "password": "clinic-password",
        "doctors": [DoctorEntry(name="Dr. Ada", specialization="Orthodontics", email="Ada@Example.com")],
    }
    data.update(overrides)
    return ClinicCreate(**data)


def test_legacy_single_doctor_columns_are_exposed_as_list():
    clinic = Clinic(name="Old Clinic", doctor_name="Dr. Legacy", doctor_degree="BDS")
    assert clinic_doctors(clinic) == [
        {"name": "Dr. Legacy", "specialization": None, "degree": "BDS", "email": None}
    ]


@pytest.mark.asyncio
async def test_create_clinic_hashes_password_and_mirrors_first_doctor(db_session):
    clinic = await create_clinic(db_session, _create())

    assert clinic.password_hash and clinic.password_hash != "clinic-password"
    assert clinic.doctor_name == "Dr. Ada"
    assert clinic_doctors(clinic)[0]["email"] == "ada@example.com"
    assert await authenticate_clinic(db_session, "acme", "clinic-password") is not None
    assert await authenticate_clinic(db_session, "acme", "wrong") is None


@pytest.mark.asyncio
async def test_duplicate_username_conflicts(db_session):
    await create_clinic(db_session, _create())
    with pytest.raises(ConflictError):
        await create_clinic(db_session, _create(name="Other"))


@pytest.mark.asyncio
async def test_missing_credentials_rejected(db_session):
    with pytest.raises(ValidationFailedError):
        await create_clinic(db_session, _create(password=""))


@pytest.mark.asyncio
async def test_archived_clinic_is_hidden_and_cannot_log_in(db_session):
    clinic = await create_clinic(db_session, _create())
    await set_archived(db_session, clinic.id, True)

    assert await list_clinics(db_session) == []
    assert [c.id for c in await list_clinics(db_session, include_archived=True)] == [clinic.id]
    assert await authenticate_clinic(db_session, "acme", "clinic-password") is None

    await set_archived(db_session, clinic.id, False)
    assert await authenticate_clinic(db_session, "acme", "clinic-password") is not None


@pytest.mark.asyncio
async def test_doctor_invite_and_password_setup(db_session):
    clinic = await create_clinic(db_session, _create())

    _, doctor, token = await create_doctor_invite(db_session, clinic.id, "ada@example.com")
    assert doctor["name"] == "Dr. Ada"
    resolved_clinic, resolved = await resolve_invite(db_session, token)
    assert resolved_clinic.id == clinic.id

    with pytest.raises(ValidationFailedError):
        await setup_doctor_password(db_session, token, "short")
    await setup_doctor_password(db_session, token, "doctor-password")

    found = await authenticate_doctor(db_session, "ADA@example.com", "doctor-password")
    assert found is not None
    assert found[0].id == clinic.id
    assert await authenticate_doctor(db_session, "ada@example.com", "wrong-password") is None


@pytest.mark.asyncio
async def test_invite_for_unknown_doctor_or_clinic(db_session):
    clinic = await create_clinic(db_session, _create())

    with pytest.raises(NotFoundError):
        await create_doctor_invite(db_session, clinic.id, "nobody@example.com")
    with pytest.raises(NotFoundError):
        await create_doctor_invite(db_session, 999, "ada@example.com")
    with pytest.raises(ValidationFailedError):
        await resolve_invite(db_session, create_invite_token(clinic.id, "nobody@example.com"))
    with pytest.raises(ValidationFailedError):
        await resolve_invite(db_session, "garbage")


@pytest.mark.asyncio
async def test_replacing_doctors_keeps_existing_passwords(db_session):
    clinic = await create_clinic(db_session, _create())
    _, _, token = await create_doctor_invite(db_session, clinic.id, "ada@example.com")
    await setup_doctor_password(db_session, token, "doctor-password")

    await update_clinic(
        db_session,
        clinic.id,
        ClinicUpdate(
            doctors=[
                DoctorEntry(name="Dr. Ada", specialization="Orthodontics", email="ada@example.com"),
                DoctorEntry(name="Dr. Bo", email="bo@example.com"),
            ]
        ),
    )

    assert await authenticate_doctor(db_session, "ada@example.com", "doctor-password") is not None
    assert [d["name"] for d in clinic_doctors(clinic)] == ["Dr. Ada", "Dr. Bo"]


@pytest.mark.asyncio
async def test_update_rejects_taken_username(db_session):
    await create_clinic(db_session, _create())
    other = await create_clinic(db_session, _create(name="Other", username="other"))

    with pytest.raises(ConflictError):
        await update_clinic(db_session, other.id, ClinicUpdate(username="acme"))
