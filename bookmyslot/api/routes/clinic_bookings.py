from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.deps import get_clinic_staff, get_current_clinic
from bookmyslot.api.presenters import pair_to_public
from bookmyslot.api.schemas.base import MessageResponse
from bookmyslot.api.schemas.booking import AssignDoctorRequest, BookingPublic
from bookmyslot.core.db import get_session
from bookmyslot.models.clinic import Clinic
from bookmyslot.services.booking_service import assign_doctor, cancel_clinic_booking, list_clinic_bookings
from bookmyslot.services.email_service import send_booking_cancellation_email

router = APIRouter(prefix="/clinic/bookings", tags=["clinic bookings"])


@router.get("", response_model=list[BookingPublic])
async def list_bookings(
    session: AsyncSession = Depends(get_session),
    clinic: Clinic = Depends(get_clinic_staff),
) -> list[BookingPublic]:
    return [pair_to_public(found) for found in await list_clinic_bookings(session, clinic)]


@router.delete("/{booking_id}", response_model=MessageResponse)
async def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    clinic: Clinic = Depends(get_current_clinic),
) -> MessageResponse:
    found = await cancel_clinic_booking(session, clinic, booking_id)
    if found.booking.customer_email:
        background_tasks.add_task(
            send_booking_cancellation_email,
            to_email=found.booking.customer_email,
            customer_name=found.booking.customer_name,
            clinic_name=clinic.name,
            start_time=found.slot.start_time,
        )
    return MessageResponse(message="Booking cancelled successfully")


@router.patch("/{booking_id}/assign-doctor", response_model=BookingPublic)
async def assign_booking_doctor(
    booking_id: int,
    body: AssignDoctorRequest,
    session: AsyncSession = Depends(get_session),
    clinic: Clinic = Depends(get_current_clinic),
) -> BookingPublic:
    return pair_to_public(await assign_doctor(session, clinic, booking_id, body.doctor_name))
