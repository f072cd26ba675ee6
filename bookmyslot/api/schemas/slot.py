from datetime import datetime

from bookmyslot.api.schemas.base import CamelModel


class SlotPublic(CamelModel):
    id: int
    owner_id: int | None = None
    start_time: datetime
    end_time: datetime
    is_booked: bool
    clinic_name: str | None = None
    clinic_id: int | None = None
    max_bookings: int
    is_cancelled: bool


class SlotCreateRequest(CamelModel):
    start_time: datetime
    end_time: datetime
    clinic_name: str | None = None
    max_bookings: int | None = None
