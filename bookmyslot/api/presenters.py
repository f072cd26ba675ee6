"""ORM rows -> response models. Password hashes and verification codes never leave here."""
from datetime import datetime

from bookmyslot.api.schemas.booking import BookingPublic
from bookmyslot.api.schemas.clinic import ClinicPublic, DoctorPublic
from bookmyslot.api.schemas.notification import NotificationPublic
from bookmyslot.api.schemas.slot import SlotPublic
from bookmyslot.models.booking import Booking
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.notification import Notification
from bookmyslot.models.slot import Slot
from bookmyslot.services.booking_service import BookingWithSlot
from bookmyslot.services.clinic_service import clinic_doctors


def _naive(dt: datetime | None) -> datetime | None:
    if isinstance(dt, datetime) and dt.tzinfo is not None:
        return dt.replace(tzinfo=None)
    return dt


def slot_to_public(s: Slot) -> SlotPublic:
    return SlotPublic(
        id=s.id,
        owner_id=s.owner_id,
        start_time=_naive(s.start_time),
        end_time=_naive(s.end_time),
        is_booked=s.is_booked,
        clinic_name=s.clinic_name,
        clinic_id=s.clinic_id,
        max_bookings=s.max_bookings,
        is_cancelled=s.is_cancelled,
    )


def booking_to_public(b: Booking, slot: Slot | None = None) -> BookingPublic:
    return BookingPublic(
        id=b.id,
        slot_id=b.slot_id,
        customer_id=b.customer_id,
        customer_name=b.customer_name,
        customer_phone=b.customer_phone,
        customer_email=b.customer_email,
        description=b.description,
        verification_status=b.verification_status,
        verification_expires_at=_naive(b.verification_expires_at),
        assigned_doctor=b.assigned_doctor,
        created_at=_naive(b.created_at),
        slot=slot_to_public(slot) if slot else None,
    )


def pair_to_public(found: BookingWithSlot) -> BookingPublic:
    return booking_to_public(found.booking, found.slot)


def clinic_to_public(c: Clinic) -> ClinicPublic:
    doctors = [
        DoctorPublic(
            name=d.get("name") or "",
            specialization=d.get("specialization"),
            degree=d.get("degree"),
            email=d.get("email"),
            has_account=bool(d.get("password_hash")),
        )
        for d in clinic_doctors(c)
    ]
    return ClinicPublic(
        id=c.id,
        name=c.name,
        address=c.address,
        email=c.email,
        phone=c.phone,
        logo_url=c.logo_url,
        description=c.description,
        username=c.username,
        is_archived=c.is_archived,
        doctors=doctors,
        doctor_name=c.doctor_name,
        doctor_specialization=c.doctor_specialization,
        doctor_degree=c.doctor_degree,
        created_at=_naive(c.created_at),
    )


def notification_to_public(n: Notification) -> NotificationPublic:
    return NotificationPublic(
        id=n.id,
        user_id=n.user_id,
        message=n.message,
        read=n.read,
        created_at=_naive(n.created_at),
    )
