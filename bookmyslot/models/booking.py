from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

STATUS_PENDING = "pending"
STATUS_VERIFIED = "verified"


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    id: int | None = Field(default=None, primary_key=True)
    slot_id: int = Field(foreign_key="slots.id", index=True, ondelete="CASCADE")
    customer_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    customer_name: str = Field(max_length=255)
    customer_phone: str = Field(max_length=50)
    customer_email: str | None = Field(default=None, max_length=255)
    description: str | None = None
    verification_code: str | None = Field(default=None, max_length=10)
    verification_status: str = Field(default=STATUS_PENDING, max_length=20)
    verification_expires_at: datetime | None = Field(default=None, sa_type=DateTime())
    assigned_doctor: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class PublicBookingCreate(SQLModel):
    customer_name: str
    customer_phone: str
    customer_email: str
    clinic_id: int
    clinic_name: str | None = None
    start_time: datetime
    end_time: datetime
    description: str | None = None
