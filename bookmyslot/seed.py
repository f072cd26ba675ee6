"""Demo data: one clinic login and five one-hour slots starting 09:00 UTC today.

Run with ``python -m bookmyslot.seed``. Re-running resets the demo password
and leaves existing slots alone.
"""
import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.core.db import async_session_maker, init_db
from bookmyslot.core.security import hash_password
from bookmyslot.models.clinic import ClinicCreate
from bookmyslot.models.slot import SlotCreate
from bookmyslot.services.capacity_service import utc_naive_now
from bookmyslot.services.clinic_service import create_clinic, get_clinic_by_username
from bookmyslot.services.slot_service import create_slot

logger = logging.getLogger(__name__)

DEMO_CLINIC_NAME = "Demo Smile Clinic"
DEMO_USERNAME = "demo_clinic"
DEMO_PASSWORD = "demo_password123"
DEMO_SLOT_COUNT = 5


async def seed_demo_clinic(session: AsyncSession, today: datetime | None = None):
    existing = await get_clinic_by_username(session, DEMO_USERNAME)
    if existing:
        existing.password_hash = hash_password(DEMO_PASSWORD)
        session.add(existing)
        await session.flush()
        logger.info("Demo clinic already exists, password reset")
        return existing

    clinic = await create_clinic(
        session,
        ClinicCreate(
            name=DEMO_CLINIC_NAME,
            address="123 Demo St, Dental City",
            username=DEMO_USERNAME,
            password=DEMO_PASSWORD,
        ),
    )
    day = (today or utc_naive_now()).replace(hour=9, minute=0, second=0, microsecond=0)
    for i in range(DEMO_SLOT_COUNT):
        start = day + timedelta(hours=i)
        await create_slot(session, SlotCreate(start_time=start, end_time=start + timedelta(hours=1)), clinic=clinic)
    logger.info("Created %s with %d slots", clinic.name, DEMO_SLOT_COUNT)
    return clinic


async def main() -> None:
    await init_db()
    async with async_session_maker() as session:
        await seed_demo_clinic(session)
        await session.commit()
    logger.info("Login: %s / %s", DEMO_USERNAME, DEMO_PASSWORD)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
