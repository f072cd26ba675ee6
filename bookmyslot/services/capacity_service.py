"""Counting reservations that occupy a clinic + start time window.

Matching is by clinic id; slots written before clinic ids existed only carry
``clinic_name`` and are matched by name when ``legacy_clinic_name_matching``
is on. The window is +/- ``capacity_window_seconds`` around the requested
start because client and server build the timestamp independently.

Counting alone does not stop two requests from admitting the same seat.
Callers take :func:`lock_clinic` first, so count-then-insert runs serialized
per clinic inside the request transaction.
"""
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.core.config import settings
from bookmyslot.models.booking import STATUS_PENDING, STATUS_VERIFIED, Booking
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.slot import Slot

logger = logging.getLogger(__name__)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _clinic_match(clinic_id: int | None, clinic_name: str | None):
    conditions = []
    if clinic_id is not None:
        conditions.append(Slot.clinic_id == clinic_id)
    if clinic_name and settings.legacy_clinic_name_matching:
        conditions.append(and_(Slot.clinic_id.is_(None), Slot.clinic_name == clinic_name))
    if not conditions:
        return None
    return or_(*conditions)


def _window(start_time: datetime) -> tuple[datetime, datetime]:
    start = to_naive_utc(start_time)
    tolerance = timedelta(seconds=settings.capacity_window_seconds)
    return start - tolerance, start + tolerance


async def _count(session: AsyncSession, clinic_id: int | None, clinic_name: str | None, start_time: datetime, status_clause) -> int:
    match = _clinic_match(clinic_id, clinic_name)
    if match is None:
        return 0
    lower, upper = _window(start_time)
    result = await session.execute(
        select(func.count(Booking.id))
        .join(Slot, Booking.slot_id == Slot.id)
        .where(
            Slot.start_time >= lower,
            Slot.start_time <= upper,
            match,
            status_clause,
        )
    )
    return result.scalar_one()


async def count_verified_for_clinic_time(
    session: AsyncSession, clinic_id: int | None, clinic_name: str | None, start_time: datetime
) -> int:
    return await _count(
        session, clinic_id, clinic_name, start_time, Booking.verification_status == STATUS_VERIFIED
    )


async def count_any_active_for_clinic_time(
    session: AsyncSession, clinic_id: int | None, clinic_name: str | None, start_time: datetime
) -> int:
    """Verified bookings plus pending ones whose code has not expired yet."""
    pending_alive = and_(
        Booking.verification_status == STATUS_PENDING,
        Booking.verification_expires_at.is_not(None),
        Booking.verification_expires_at > utc_naive_now(),
    )
    return await _count(
        session,
        clinic_id,
        clinic_name,
        start_time,
        or_(Booking.verification_status == STATUS_VERIFIED, pending_alive),
    )


def is_full(count: int) -> bool:
    return count >= settings.max_bookings_per_slot


async def lock_clinic(session: AsyncSession, clinic_id: int) -> Clinic | None:
    """Row-lock the clinic for the rest of the transaction (no-op on SQLite)."""
    result = await session.execute(select(Clinic).where(Clinic.id == clinic_id).with_for_update())
    return result.scalar_one_or_none()


async def backfill_slot_clinic_ids(session: AsyncSession) -> int:
    """Give clinic_id to slots that only carry a clinic name matching exactly one clinic."""
    result = await session.execute(
        select(Clinic.name, func.min(Clinic.id)).group_by(Clinic.name).having(func.count(Clinic.id) == 1)
    )
    updated = 0
    for name, clinic_id in result.all():
        res = await session.execute(
            update(Slot)
            .where(Slot.clinic_id.is_(None), Slot.clinic_name == name)
            .values(clinic_id=clinic_id)
            .execution_options(synchronize_session=False)
        )
        updated += res.rowcount or 0
    if updated:
        logger.info("Backfilled clinic_id on %d legacy slot(s)", updated)
    await session.flush()
    return updated
