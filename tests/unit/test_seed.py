from datetime import datetime

import pytest

from bookmyslot.seed import DEMO_PASSWORD, DEMO_USERNAME, seed_demo_clinic
from bookmyslot.services.clinic_service import authenticate_clinic
from bookmyslot.services.slot_service import list_slots


@pytest.mark.asyncio
async def test_seed_creates_clinic_with_five_hourly_slots(db_session):
    clinic = await seed_demo_clinic(db_session, today=datetime(2025, 3, 10, 15, 30))

    slots = await list_slots(db_session, clinic_id=clinic.id)
    assert [s.start_time.hour for s in slots] == [9, 10, 11, 12, 13]
    assert all((s.end_time - s.start_time).total_seconds() == 3600 for s in slots)
    assert await authenticate_clinic(db_session, DEMO_USERNAME, DEMO_PASSWORD) is not None


@pytest.mark.asyncio
async def test_seed_is_rerunnable(db_session):
    first = await seed_demo_clinic(db_session)
    second = await seed_demo_clinic(db_session)

    assert first.id == second.id
    assert len(await list_slots(db_session, clinic_id=first.id)) == 5
