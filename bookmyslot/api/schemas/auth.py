from pydantic import BaseModel, EmailStr

from bookmyslot.api.schemas.base import CamelModel


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(CamelModel):
    email: EmailStr
    password: str
    full_name: str | None = None
    name: str | None = None  # frontend sends "name"; used when full_name is absent
    role: str = "customer"


class ClinicLoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class ActorPublic(CamelModel):
    id: str
    kind: str
    role: str | None = None
    email: str | None = None
    clinic_id: int | None = None


class AdminLoginResponse(TokenResponse):
    id: str
    email: str
    role: str
    message: str = "Login successful"


class DoctorSession(CamelModel):
    email: str
    name: str
    specialization: str | None = None
    degree: str | None = None
    clinic_id: int
    clinic_name: str
    logo_url: str | None = None


class DoctorLoginResponse(TokenResponse):
    doctor: DoctorSession


class InviteInfo(CamelModel):
    email: str
    name: str
    clinic_id: int
    clinic_name: str


class SetupPasswordRequest(BaseModel):
    token: str
    password: str
