from datetime import datetime

from pydantic import EmailStr

from bookmyslot.api.schemas.base import CamelModel
from bookmyslot.api.schemas.auth import TokenResponse


class DoctorPublic(CamelModel):
    name: str
    specialization: str | None = None
    degree: str | None = None
    email: str | None = None
    has_account: bool = False


class DoctorIn(CamelModel):
    name: str
    specialization: str | None = None
    degree: str | None = None
    email: EmailStr | None = None


class ClinicCreateRequest(CamelModel):
    name: str
    username: str
    password: str
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    description: str | None = None
    doctors: list[DoctorIn] = []


class ClinicUpdateRequest(CamelModel):
    name: str | None = None
    username: str | None = None
    password: str | None = None
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    description: str | None = None
    doctors: list[DoctorIn] | None = None


class ClinicPublic(CamelModel):
    id: int
    name: str
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    description: str | None = None
    username: str | None = None
    is_archived: bool
    doctors: list[DoctorPublic]
    # Legacy single-doctor fields
    doctor_name: str | None = None
    doctor_specialization: str | None = None
    doctor_degree: str | None = None
    created_at: datetime | None = None


class ClinicLoginResponse(TokenResponse):
    clinic: ClinicPublic


class DoctorInviteRequest(CamelModel):
    email: EmailStr


class DoctorInviteResponse(CamelModel):
    message: str
    invite_url: str
    token: str
