from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.deps import get_current_actor
from bookmyslot.api.presenters import slot_to_public
from bookmyslot.api.schemas.slot import SlotCreateRequest, SlotPublic
from bookmyslot.core.db import get_session
from bookmyslot.core.security import ACTOR_CLINIC, Actor
from bookmyslot.models.slot import SlotCreate
from bookmyslot.services.clinic_service import get_clinic
from bookmyslot.services.slot_service import (
    cancel_slot,
    create_slot,
    delete_slot,
    ensure_can_create_slots,
    list_slots,
)

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("", response_model=list[SlotPublic])
async def get_slots(
    owner_id: int | None = Query(None, alias="ownerId"),
    clinic_id: int | None = Query(None, alias="clinicId"),
    date_param: date | None = Query(None, alias="date"),
    session: AsyncSession = Depends(get_session),
) -> list[SlotPublic]:
    """Slots ordered by start time; ``date`` (YYYY-MM-DD) limits to that UTC day."""
    slots = await list_slots(session, owner_id=owner_id, on_date=date_param, clinic_id=clinic_id)
    return [slot_to_public(s) for s in slots]


@router.post("", response_model=SlotPublic, status_code=status.HTTP_201_CREATED)
async def add_slot(
    body: SlotCreateRequest,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> SlotPublic:
    ensure_can_create_slots(actor)
    data = SlotCreate(
        start_time=body.start_time,
        end_time=body.end_time,
        clinic_name=body.clinic_name,
        max_bookings=body.max_bookings,
    )
    if actor.kind == ACTOR_CLINIC:
        clinic = await get_clinic(session, actor.clinic_id)
        if not clinic or clinic.is_archived:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Clinic not found")
        slot = await create_slot(session, data, clinic=clinic)
    else:
        slot = await create_slot(session, data, owner_id=int(actor.subject))
    return slot_to_public(slot)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_slot(
    slot_id: int,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> Response:
    await delete_slot(session, slot_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{slot_id}/cancel", response_model=SlotPublic)
async def cancel(
    slot_id: int,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> SlotPublic:
    return slot_to_public(await cancel_slot(session, slot_id, actor))
