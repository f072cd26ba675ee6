from datetime import datetime

from bookmyslot.api.schemas.base import CamelModel
from bookmyslot.api.schemas.slot import SlotPublic


class PublicBookingRequest(CamelModel):
    customer_name: str
    customer_phone: str
    customer_email: str
    clinic_id: int
    clinic_name: str | None = None
    start_time: datetime
    end_time: datetime
    description: str | None = None


class VerifyRequest(CamelModel):
    booking_id: int
    code: str


class ResendRequest(CamelModel):
    booking_id: int


class BookingCreateRequest(CamelModel):
    # slotId missing or 0 requests a slot created on demand for clinicId + times
    slot_id: int | None = None
    clinic_id: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    customer_name: str
    customer_phone: str
    description: str | None = None


class AssignDoctorRequest(CamelModel):
    doctor_name: str | None = None


class BookingPublic(CamelModel):
    id: int
    slot_id: int
    customer_id: int | None = None
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    description: str | None = None
    verification_status: str
    verification_expires_at: datetime | None = None
    assigned_doctor: str | None = None
    created_at: datetime | None = None
    slot: SlotPublic | None = None


class BookingEnvelope(CamelModel):
    message: str
    booking: BookingPublic
