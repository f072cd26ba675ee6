from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Clinic(SQLModel, table=True):
    __tablename__ = "clinics"
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    address: str | None = Field(default=None, max_length=500)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    logo_url: str | None = None
    description: str | None = None
    username: str | None = Field(default=None, unique=True, index=True, max_length=100)
    password_hash: str | None = Field(default=None, max_length=255)
    is_archived: bool = False
    # [{name, specialization, degree, email, password_hash}]
    doctors: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # Single-doctor columns kept for rows written before the doctors list
    doctor_name: str | None = None
    doctor_specialization: str | None = None
    doctor_degree: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class DoctorEntry(SQLModel):
    name: str
    specialization: str | None = None
    degree: str | None = None
    email: str | None = None


class ClinicCreate(SQLModel):
    name: str
    username: str
    password: str
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    description: str | None = None
    doctors: list[DoctorEntry] = []


class ClinicUpdate(SQLModel):
    name: str | None = None
    username: str | None = None
    password: str | None = None
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    description: str | None = None
    doctors: list[DoctorEntry] | None = None
