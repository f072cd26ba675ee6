import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from bookmyslot.core.errors import ConflictError, NotFoundError, ValidationFailedError
from bookmyslot.core.security import (
    create_invite_token,
    decode_invite_token,
    hash_password,
    verify_password,
)
from bookmyslot.models.clinic import Clinic, ClinicCreate, ClinicUpdate, DoctorEntry

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def clinic_doctors(clinic: Clinic) -> list[dict[str, Any]]:
    """Doctors of a clinic, falling back to the legacy single-doctor columns."""
    if clinic.doctors:
        return [dict(d) for d in clinic.doctors]
    if clinic.doctor_name:
        return [
            {
                "name": clinic.doctor_name,
                "specialization": clinic.doctor_specialization,
                "degree": clinic.doctor_degree,
                "email": None,
            }
        ]
    return []


def _set_doctors(clinic: Clinic, doctors: list[dict[str, Any]]) -> None:
    clinic.doctors = [dict(d) for d in doctors]
    # Plain JSON column: in-place edits are not tracked
    flag_modified(clinic, "doctors")
    first = doctors[0] if doctors else {}
    clinic.doctor_name = first.get("name")
    clinic.doctor_specialization = first.get("specialization")
    clinic.doctor_degree = first.get("degree")


def _normalize_email(email: str | None) -> str | None:
    return email.strip().lower() if email else None


def _merge_doctors(existing: list[dict[str, Any]], entries: list[DoctorEntry]) -> list[dict[str, Any]]:
    """Replace the doctors list, keeping password hashes of doctors that stay (by email)."""
    hashes = {
        _normalize_email(d.get("email")): d.get("password_hash")
        for d in existing
        if d.get("email") and d.get("password_hash")
    }
    merged = []
    for entry in entries:
        email = _normalize_email(entry.email)
        merged.append(
            {
                "name": entry.name,
                "specialization": entry.specialization,
                "degree": entry.degree,
                "email": email,
                "password_hash": hashes.get(email),
            }
        )
    return merged


async def get_clinic(session: AsyncSession, clinic_id: int) -> Clinic | None:
    result = await session.execute(select(Clinic).where(Clinic.id == clinic_id))
    return result.scalar_one_or_none()


async def get_clinic_by_username(session: AsyncSession, username: str) -> Clinic | None:
    result = await session.execute(select(Clinic).where(Clinic.username == username))
    return result.scalar_one_or_none()


async def list_clinics(session: AsyncSession, include_archived: bool = False) -> list[Clinic]:
    q = select(Clinic).order_by(Clinic.name)
    if not include_archived:
        q = q.where(Clinic.is_archived == False)  # noqa: E712
    result = await session.execute(q)
    return list(result.scalars().all())


async def create_clinic(session: AsyncSession, data: ClinicCreate) -> Clinic:
    if not data.name or not data.username or not data.password:
        raise ValidationFailedError("Name, username, and password are required")
    if await get_clinic_by_username(session, data.username):
        raise ConflictError("Username is already taken")
    clinic = Clinic(
        name=data.name,
        username=data.username,
        password_hash=hash_password(data.password),
        address=data.address,
        email=data.email,
        phone=data.phone,
        logo_url=data.logo_url,
        description=data.description,
    )
    _set_doctors(clinic, _merge_doctors([], data.doctors))
    session.add(clinic)
    await session.flush()
    await session.refresh(clinic)
    logger.info("Created clinic %s (%s)", clinic.id, clinic.name)
    return clinic


async def update_clinic(session: AsyncSession, clinic_id: int, data: ClinicUpdate) -> Clinic:
    clinic = await get_clinic(session, clinic_id)
    if not clinic:
        raise NotFoundError("Clinic not found")
    changes = data.model_dump(exclude_unset=True, exclude={"password", "doctors"})
    if "username" in changes and changes["username"] != clinic.username:
        if await get_clinic_by_username(session, changes["username"]):
            raise ConflictError("Username is already taken")
    for key, value in changes.items():
        setattr(clinic, key, value)
    if data.password:
        clinic.password_hash = hash_password(data.password)
    if data.doctors is not None:
        _set_doctors(clinic, _merge_doctors(clinic_doctors(clinic), data.doctors))
    session.add(clinic)
    await session.flush()
    await session.refresh(clinic)
    return clinic


async def set_archived(session: AsyncSession, clinic_id: int, archived: bool) -> Clinic:
    clinic = await get_clinic(session, clinic_id)
    if not clinic:
        raise NotFoundError("Clinic not found")
    clinic.is_archived = archived
    session.add(clinic)
    await session.flush()
    logger.info("Clinic %s %s", clinic_id, "archived" if archived else "unarchived")
    return clinic


async def authenticate_clinic(session: AsyncSession, username: str, password: str) -> Clinic | None:
    clinic = await get_clinic_by_username(session, username)
    if not clinic or not clinic.password_hash or clinic.is_archived:
        return None
    if not verify_password(password, clinic.password_hash):
        return None
    return clinic


async def find_doctor(session: AsyncSession, email: str) -> tuple[Clinic, dict[str, Any]] | None:
    email = _normalize_email(email)
    for clinic in await list_clinics(session):
        for doctor in clinic_doctors(clinic):
            if _normalize_email(doctor.get("email")) == email:
                return clinic, doctor
    return None


async def authenticate_doctor(
    session: AsyncSession, email: str, password: str
) -> tuple[Clinic, dict[str, Any]] | None:
    found = await find_doctor(session, email)
    if not found:
        return None
    clinic, doctor = found
    if not doctor.get("password_hash") or not verify_password(password, doctor["password_hash"]):
        return None
    return clinic, doctor


async def create_doctor_invite(
    session: AsyncSession, clinic_id: int, email: str
) -> tuple[Clinic, dict[str, Any], str]:
    clinic = await get_clinic(session, clinic_id)
    if not clinic:
        raise NotFoundError("Clinic not found")
    email = _normalize_email(email)
    doctor = next((d for d in clinic_doctors(clinic) if _normalize_email(d.get("email")) == email), None)
    if doctor is None:
        raise NotFoundError("Doctor not found in this clinic")
    return clinic, doctor, create_invite_token(clinic.id, email)


async def resolve_invite(session: AsyncSession, token: str) -> tuple[Clinic, dict[str, Any]]:
    clinic_id, email = decode_invite_token(token)
    clinic = await get_clinic(session, clinic_id) if clinic_id else None
    if not clinic or clinic.is_archived:
        raise ValidationFailedError("Invalid or expired invite link")
    doctor = next(
        (d for d in clinic_doctors(clinic) if _normalize_email(d.get("email")) == _normalize_email(email)),
        None,
    )
    if doctor is None:
        raise ValidationFailedError("Invalid or expired invite link")
    return clinic, doctor


async def setup_doctor_password(session: AsyncSession, token: str, password: str) -> tuple[Clinic, dict[str, Any]]:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    clinic, doctor = await resolve_invite(session, token)
    doctors = clinic_doctors(clinic)
    for entry in doctors:
        if _normalize_email(entry.get("email")) == _normalize_email(doctor.get("email")):
            entry["password_hash"] = hash_password(password)
            doctor = entry
    _set_doctors(clinic, doctors)
    session.add(clinic)
    await session.flush()
    return clinic, doctor
