from datetime import date, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.core.config import settings
from bookmyslot.core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from bookmyslot.core.security import ACTOR_CLINIC, ACTOR_USER, Actor
from bookmyslot.models.booking import Booking
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.slot import Slot, SlotCreate
from bookmyslot.models.user import ROLE_OWNER
from bookmyslot.services.capacity_service import to_naive_utc


def slot_belongs_to_clinic(slot: Slot, clinic: Clinic) -> bool:
    if slot.clinic_id is not None:
        return slot.clinic_id == clinic.id
    return settings.legacy_clinic_name_matching and slot.clinic_name == clinic.name


async def list_slots(
    session: AsyncSession,
    owner_id: int | None = None,
    on_date: date | None = None,
    clinic_id: int | None = None,
) -> list[Slot]:
    q = select(Slot).order_by(Slot.start_time)
    if owner_id is not None:
        q = q.where(Slot.owner_id == owner_id)
    if clinic_id is not None:
        q = q.where(Slot.clinic_id == clinic_id)
    if on_date:
        start = datetime(on_date.year, on_date.month, on_date.day, 0, 0, 0)
        q = q.where(Slot.start_time >= start, Slot.start_time < start + timedelta(days=1))
    result = await session.execute(q)
    return list(result.scalars().all())


async def get_slot(session: AsyncSession, slot_id: int) -> Slot | None:
    result = await session.execute(select(Slot).where(Slot.id == slot_id))
    return result.scalar_one_or_none()


async def create_slot(
    session: AsyncSession,
    data: SlotCreate,
    owner_id: int | None = None,
    clinic: Clinic | None = None,
    is_booked: bool = False,
    created_for_booking: bool = False,
) -> Slot:
    start = to_naive_utc(data.start_time)
    end = to_naive_utc(data.end_time)
    if end <= start:
        raise ValidationFailedError("End time must be after start time", field="endTime")
    slot = Slot(
        owner_id=owner_id,
        start_time=start,
        end_time=end,
        is_booked=is_booked,
        clinic_id=clinic.id if clinic else data.clinic_id,
        clinic_name=(data.clinic_name or clinic.name) if clinic else data.clinic_name,
        max_bookings=data.max_bookings or settings.max_bookings_per_slot,
        created_for_booking=created_for_booking,
    )
    session.add(slot)
    await session.flush()
    await session.refresh(slot)
    return slot


def ensure_slot_manager(slot: Slot, actor: Actor) -> None:
    """Only the owning user, or the clinic the slot belongs to, may change a slot."""
    if actor.kind == ACTOR_USER and slot.owner_id is not None and str(slot.owner_id) == actor.subject:
        return
    if actor.kind == ACTOR_CLINIC and slot.clinic_id is not None and slot.clinic_id == actor.clinic_id:
        return
    raise PermissionDeniedError("You can only modify your own slots")


def ensure_can_create_slots(actor: Actor) -> None:
    if actor.kind == ACTOR_CLINIC:
        return
    if actor.kind == ACTOR_USER and actor.role == ROLE_OWNER:
        return
    raise PermissionDeniedError("Only owners and clinics can create slots")


async def remove_slot(session: AsyncSession, slot: Slot) -> None:
    """Delete a slot together with the bookings that reference it."""
    await session.execute(delete(Booking).where(Booking.slot_id == slot.id))
    await session.delete(slot)
    await session.flush()


async def delete_slot(session: AsyncSession, slot_id: int, actor: Actor) -> None:
    slot = await get_slot(session, slot_id)
    if not slot:
        raise NotFoundError("Slot not found")
    ensure_slot_manager(slot, actor)
    await remove_slot(session, slot)


async def cancel_slot(session: AsyncSession, slot_id: int, actor: Actor) -> Slot:
    slot = await get_slot(session, slot_id)
    if not slot:
        raise NotFoundError("Slot not found")
    ensure_slot_manager(slot, actor)
    slot.is_cancelled = True
    session.add(slot)
    await session.flush()
    return slot
