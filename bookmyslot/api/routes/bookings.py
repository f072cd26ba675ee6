from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.deps import get_current_user
from bookmyslot.api.presenters import pair_to_public
from bookmyslot.api.schemas.booking import BookingCreateRequest, BookingPublic
from bookmyslot.core.db import get_session
from bookmyslot.models.user import User
from bookmyslot.services.booking_service import create_authenticated_booking, list_bookings_for_user

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def book_slot(
    body: BookingCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    found = await create_authenticated_booking(
        session,
        current_user,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        slot_id=body.slot_id,
        clinic_id=body.clinic_id,
        start_time=body.start_time,
        end_time=body.end_time,
        description=body.description,
    )
    return pair_to_public(found)


@router.get("", response_model=list[BookingPublic])
async def list_my_bookings(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[BookingPublic]:
    return [pair_to_public(found) for found in await list_bookings_for_user(session, current_user)]
