from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Slot(SQLModel, table=True):
    __tablename__ = "slots"
    id: int | None = Field(default=None, primary_key=True)
    owner_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    start_time: datetime = Field(index=True, sa_type=DateTime())
    end_time: datetime = Field(sa_type=DateTime())
    is_booked: bool = False
    clinic_name: str | None = Field(default=None, max_length=255)
    clinic_id: int | None = Field(default=None, foreign_key="clinics.id", index=True)
    max_bookings: int = 3
    is_cancelled: bool = False
    created_for_booking: bool = False


class SlotCreate(SQLModel):
    start_time: datetime
    end_time: datetime
    clinic_name: str | None = None
    clinic_id: int | None = None
    max_bookings: int | None = None
