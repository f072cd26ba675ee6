"""Booking lifecycle: admission, legacy code verification, cancellation.

States of a booking: ``pending`` -> ``verified`` (row persists), ``pending`` ->
deleted together with its slot (expired code, failed re-check), ``verified``
-> deleted on clinic cancellation.

Every admission locks the clinic row before counting, so the
count-then-insert sequence is serialized per clinic and commits as one
transaction with the slot and booking rows.
"""
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.core.config import settings
from bookmyslot.core.errors import (
    CapacityExceededError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
    VerificationError,
)
from bookmyslot.models.booking import STATUS_PENDING, STATUS_VERIFIED, Booking, PublicBookingCreate
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.slot import Slot, SlotCreate
from bookmyslot.models.user import ROLE_OWNER, User
from bookmyslot.services.capacity_service import (
    count_any_active_for_clinic_time,
    count_verified_for_clinic_time,
    is_full,
    lock_clinic,
    to_naive_utc,
    utc_naive_now,
)
from bookmyslot.services.clinic_service import clinic_doctors
from bookmyslot.services.notification_service import create_notification
from bookmyslot.services.slot_service import create_slot, get_slot, remove_slot, slot_belongs_to_clinic

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CAPACITY_MESSAGE = "This time slot is fully booked. Please choose another time."
EXPIRED_MESSAGE = "Verification code has expired. Please book again."


@dataclass
class BookingWithSlot:
    booking: Booking
    slot: Slot


def generate_verification_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _validate_public_request(data: PublicBookingCreate) -> None:
    if not (data.customer_name or "").strip() or not (data.customer_phone or "").strip():
        raise ValidationFailedError("Missing required fields")
    if not (data.customer_email or "").strip():
        raise ValidationFailedError("Missing required fields")
    if not EMAIL_RE.match(data.customer_email):
        raise ValidationFailedError("Invalid email format", field="customerEmail")


async def _admit(session: AsyncSession, clinic_id: int, start_time: datetime, count_active: bool = False) -> Clinic:
    """Lock the clinic, then reject when the window is already full."""
    clinic = await lock_clinic(session, clinic_id)
    if not clinic or clinic.is_archived:
        raise NotFoundError("Clinic not found")
    counter = count_any_active_for_clinic_time if count_active else count_verified_for_clinic_time
    existing = await counter(session, clinic.id, clinic.name, start_time)
    if is_full(existing):
        logger.info("Capacity reached for clinic %s at %s (%d booked)", clinic.id, start_time, existing)
        raise CapacityExceededError(CAPACITY_MESSAGE)
    return clinic


async def create_public_booking(session: AsyncSession, data: PublicBookingCreate) -> BookingWithSlot:
    """Primary public flow: the booking is verified on creation, no code step."""
    _validate_public_request(data)
    start = to_naive_utc(data.start_time)
    clinic = await _admit(session, data.clinic_id, start)
    slot = await create_slot(
        session,
        SlotCreate(
            start_time=start,
            end_time=data.end_time,
            clinic_name=data.clinic_name or clinic.name,
        ),
        clinic=clinic,
        is_booked=True,
        created_for_booking=True,
    )
    booking = Booking(
        slot_id=slot.id,
        customer_name=data.customer_name.strip(),
        customer_phone=data.customer_phone.strip(),
        customer_email=data.customer_email.strip(),
        description=data.description,
        verification_status=STATUS_VERIFIED,
        verification_code=None,
        verification_expires_at=None,
    )
    session.add(booking)
    await session.flush()
    await session.refresh(booking)
    logger.info("Public booking %s confirmed at clinic %s for %s", booking.id, clinic.id, start)
    return BookingWithSlot(booking=booking, slot=slot)


async def request_verification(session: AsyncSession, data: PublicBookingCreate) -> BookingWithSlot:
    """Legacy flow: hold a pending booking and issue a 6-digit code."""
    _validate_public_request(data)
    start = to_naive_utc(data.start_time)
    clinic = await _admit(session, data.clinic_id, start, count_active=True)
    slot = await create_slot(
        session,
        SlotCreate(start_time=start, end_time=data.end_time, clinic_name=data.clinic_name or clinic.name),
        clinic=clinic,
        created_for_booking=True,
    )
    booking = Booking(
        slot_id=slot.id,
        customer_name=data.customer_name.strip(),
        customer_phone=data.customer_phone.strip(),
        customer_email=data.customer_email.strip(),
        description=data.description,
        verification_status=STATUS_PENDING,
        verification_code=generate_verification_code(),
        verification_expires_at=utc_naive_now() + timedelta(minutes=settings.verification_code_ttl_minutes),
    )
    session.add(booking)
    await session.flush()
    await session.refresh(booking)
    logger.info("Pending booking %s created at clinic %s for %s", booking.id, clinic.id, start)
    return BookingWithSlot(booking=booking, slot=slot)


async def get_booking(session: AsyncSession, booking_id: int) -> Booking | None:
    result = await session.execute(select(Booking).where(Booking.id == booking_id))
    return result.scalar_one_or_none()


def _is_expired(booking: Booking) -> bool:
    return booking.verification_expires_at is not None and booking.verification_expires_at <= utc_naive_now()


async def _discard_pending(session: AsyncSession, booking: Booking, reason: str) -> None:
    """Delete a pending booking and its slot; committed so it survives the error response."""
    slot = await get_slot(session, booking.slot_id)
    if slot:
        await remove_slot(session, slot)
    else:
        await session.delete(booking)
    await session.commit()
    logger.info("Discarded pending booking %s: %s", booking.id, reason)


async def _load_pending(session: AsyncSession, booking_id: int) -> Booking:
    booking = await get_booking(session, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.verification_status == STATUS_VERIFIED:
        raise VerificationError("Booking is already verified")
    if _is_expired(booking):
        await _discard_pending(session, booking, "expired")
        raise VerificationError(EXPIRED_MESSAGE)
    return booking


async def verify_booking(session: AsyncSession, booking_id: int, code: str) -> BookingWithSlot:
    booking = await _load_pending(session, booking_id)
    if not booking.verification_code or booking.verification_code != (code or "").strip():
        raise VerificationError("Invalid verification code")
    slot = await get_slot(session, booking.slot_id)
    if not slot:
        raise NotFoundError("Slot not found")
    # Capacity may have filled while the code was outstanding
    if slot.clinic_id is not None:
        await lock_clinic(session, slot.clinic_id)
    existing = await count_verified_for_clinic_time(session, slot.clinic_id, slot.clinic_name, slot.start_time)
    if is_full(existing):
        await _discard_pending(session, booking, "capacity filled during verification")
        raise CapacityExceededError(CAPACITY_MESSAGE)
    booking.verification_status = STATUS_VERIFIED
    booking.verification_code = None
    booking.verification_expires_at = None
    slot.is_booked = True
    session.add_all([booking, slot])
    await session.flush()
    logger.info("Booking %s verified", booking.id)
    return BookingWithSlot(booking=booking, slot=slot)


async def resend_code(session: AsyncSession, booking_id: int) -> Booking:
    booking = await _load_pending(session, booking_id)
    booking.verification_code = generate_verification_code()
    booking.verification_expires_at = utc_naive_now() + timedelta(minutes=settings.verification_code_ttl_minutes)
    session.add(booking)
    await session.flush()
    return booking


async def delete_expired_pending_bookings(session: AsyncSession) -> int:
    """Sweep pending bookings whose code expired, with their slots. Returns count deleted."""
    result = await session.execute(
        select(Booking).where(
            Booking.verification_status == STATUS_PENDING,
            Booking.verification_expires_at.is_not(None),
            Booking.verification_expires_at <= utc_naive_now(),
        )
    )
    expired = list(result.scalars().all())
    for booking in expired:
        slot = await get_slot(session, booking.slot_id)
        if slot:
            await remove_slot(session, slot)
        else:
            await session.delete(booking)
    await session.flush()
    return len(expired)


async def create_authenticated_booking(
    session: AsyncSession,
    user: User,
    customer_name: str,
    customer_phone: str,
    slot_id: int | None = None,
    clinic_id: int | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    description: str | None = None,
) -> BookingWithSlot:
    """Book an existing slot, or (slot_id missing or 0) a clinic time created on demand."""
    if not (customer_name or "").strip() or not (customer_phone or "").strip():
        raise ValidationFailedError("Name and phone number are required")
    if slot_id:
        slot = await get_slot(session, slot_id)
        if not slot:
            raise NotFoundError("Slot not found")
        # Published clinic slots share the clinic + time cap with on-demand bookings
        if slot.clinic_id is not None or slot.clinic_name:
            if slot.clinic_id is not None:
                await lock_clinic(session, slot.clinic_id)
            existing = await count_verified_for_clinic_time(
                session, slot.clinic_id, slot.clinic_name, slot.start_time
            )
            if is_full(existing):
                logger.info("Capacity reached for slot %s at %s (%d booked)", slot.id, slot.start_time, existing)
                raise CapacityExceededError(CAPACITY_MESSAGE)
        # Single conditional write claims the slot; a concurrent claim sees rowcount 0
        result = await session.execute(
            update(Slot)
            .where(Slot.id == slot_id, Slot.is_booked == False, Slot.is_cancelled == False)  # noqa: E712
            .values(is_booked=True)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            await session.refresh(slot)
            if slot.is_cancelled:
                raise ValidationFailedError("Slot has been cancelled")
            raise ValidationFailedError("Slot already booked")
        await session.refresh(slot)
    else:
        if clinic_id is None or start_time is None or end_time is None:
            raise ValidationFailedError("Either slotId or clinicId with startTime and endTime is required")
        start = to_naive_utc(start_time)
        clinic = await _admit(session, clinic_id, start)
        slot = await create_slot(
            session,
            SlotCreate(start_time=start, end_time=end_time),
            clinic=clinic,
            is_booked=True,
            created_for_booking=True,
        )
    booking = Booking(
        slot_id=slot.id,
        customer_id=user.id,
        customer_name=customer_name.strip(),
        customer_phone=customer_phone.strip(),
        customer_email=user.email,
        description=description,
        verification_status=STATUS_VERIFIED,
    )
    session.add(booking)
    await session.flush()
    await session.refresh(booking)

    when = slot.start_time.strftime("%Y-%m-%d %H:%M")
    await create_notification(session, user.id, f"You have successfully booked a slot on {when} UTC")
    if slot.owner_id is not None:
        await create_notification(session, slot.owner_id, f"Your slot on {when} UTC has been booked!")
    logger.info("User %s booked slot %s (booking %s)", user.id, slot.id, booking.id)
    return BookingWithSlot(booking=booking, slot=slot)


async def list_bookings_for_user(session: AsyncSession, user: User) -> list[BookingWithSlot]:
    q = select(Booking, Slot).join(Slot, Booking.slot_id == Slot.id).order_by(Slot.start_time)
    if user.role == ROLE_OWNER:
        q = q.where(Slot.owner_id == user.id)
    else:
        q = q.where(Booking.customer_id == user.id)
    result = await session.execute(q)
    return [BookingWithSlot(booking=b, slot=s) for b, s in result.all()]


async def list_clinic_bookings(session: AsyncSession, clinic: Clinic) -> list[BookingWithSlot]:
    match = Slot.clinic_id == clinic.id
    if settings.legacy_clinic_name_matching:
        match = match | ((Slot.clinic_id.is_(None)) & (Slot.clinic_name == clinic.name))
    result = await session.execute(
        select(Booking, Slot).join(Slot, Booking.slot_id == Slot.id).where(match).order_by(Slot.start_time)
    )
    return [BookingWithSlot(booking=b, slot=s) for b, s in result.all()]


async def _load_clinic_booking(session: AsyncSession, clinic: Clinic, booking_id: int) -> BookingWithSlot:
    booking = await get_booking(session, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    slot = await get_slot(session, booking.slot_id)
    if not slot or not slot_belongs_to_clinic(slot, clinic):
        raise PermissionDeniedError("Not authorized to manage this booking")
    return BookingWithSlot(booking=booking, slot=slot)


async def cancel_clinic_booking(session: AsyncSession, clinic: Clinic, booking_id: int) -> BookingWithSlot:
    """Delete the booking; a slot made for it is deleted, an explicit slot is freed."""
    found = await _load_clinic_booking(session, clinic, booking_id)
    booking, slot = found.booking, found.slot
    await session.delete(booking)
    await session.flush()
    if slot.created_for_booking:
        await remove_slot(session, slot)
    else:
        slot.is_booked = False
        session.add(slot)
        await session.flush()
    logger.info("Clinic %s cancelled booking %s", clinic.id, booking_id)
    return found


async def assign_doctor(session: AsyncSession, clinic: Clinic, booking_id: int, doctor_name: str | None) -> BookingWithSlot:
    found = await _load_clinic_booking(session, clinic, booking_id)
    if doctor_name:
        names = {d.get("name") for d in clinic_doctors(clinic)}
        if doctor_name not in names:
            raise ValidationFailedError("Doctor does not belong to this clinic", field="doctorName")
    found.booking.assigned_doctor = doctor_name or None
    session.add(found.booking)
    await session.flush()
    return found
