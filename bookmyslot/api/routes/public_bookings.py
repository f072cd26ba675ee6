import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.presenters import pair_to_public
from bookmyslot.api.schemas.base import MessageResponse
from bookmyslot.api.schemas.booking import BookingEnvelope, PublicBookingRequest, ResendRequest, VerifyRequest
from bookmyslot.core.config import settings
from bookmyslot.core.db import get_session
from bookmyslot.models.booking import PublicBookingCreate
from bookmyslot.services.booking_service import (
    create_public_booking,
    request_verification,
    resend_code,
    verify_booking,
)
from bookmyslot.services.email_service import (
    send_booking_confirmation_email,
    send_verification_code_email,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/public/bookings", tags=["public bookings"])


def _to_create(body: PublicBookingRequest) -> PublicBookingCreate:
    return PublicBookingCreate(**body.model_dump())


@router.post("", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def book(
    body: PublicBookingRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingEnvelope:
    found = await create_public_booking(session, _to_create(body))
    background_tasks.add_task(
        send_booking_confirmation_email,
        to_email=found.booking.customer_email,
        customer_name=found.booking.customer_name,
        clinic_name=found.slot.clinic_name or "",
        start_time=found.slot.start_time,
    )
    return BookingEnvelope(message="Booking confirmed!", booking=pair_to_public(found))


@router.post("/request-verification", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def request_code(
    body: PublicBookingRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingEnvelope:
    found = await request_verification(session, _to_create(body))
    background_tasks.add_task(
        send_verification_code_email,
        to_email=found.booking.customer_email,
        customer_name=found.booking.customer_name,
        code=found.booking.verification_code,
        ttl_minutes=settings.verification_code_ttl_minutes,
    )
    return BookingEnvelope(
        message="Verification code sent. Check your email to confirm the booking.",
        booking=pair_to_public(found),
    )


@router.post("/verify", response_model=BookingEnvelope)
async def verify(
    body: VerifyRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingEnvelope:
    found = await verify_booking(session, body.booking_id, body.code)
    background_tasks.add_task(
        send_booking_confirmation_email,
        to_email=found.booking.customer_email,
        customer_name=found.booking.customer_name,
        clinic_name=found.slot.clinic_name or "",
        start_time=found.slot.start_time,
    )
    return BookingEnvelope(message="Booking confirmed!", booking=pair_to_public(found))


@router.post("/resend", response_model=MessageResponse)
async def resend(
    body: ResendRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    booking = await resend_code(session, body.booking_id)
    background_tasks.add_task(
        send_verification_code_email,
        to_email=booking.customer_email,
        customer_name=booking.customer_name,
        code=booking.verification_code,
        ttl_minutes=settings.verification_code_ttl_minutes,
    )
    logger.info("Verification code resent for booking %s", booking.id)
    return MessageResponse(message="A new verification code has been sent")
