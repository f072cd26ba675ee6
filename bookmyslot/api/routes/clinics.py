import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.deps import require_admin
from bookmyslot.api.presenters import clinic_to_public
from bookmyslot.api.schemas.clinic import (
    ClinicCreateRequest,
    ClinicPublic,
    ClinicUpdateRequest,
    DoctorInviteRequest,
    DoctorInviteResponse,
)
from bookmyslot.core.config import settings
from bookmyslot.core.db import get_session
from bookmyslot.core.errors import NotFoundError
from bookmyslot.core.security import Actor
from bookmyslot.models.clinic import ClinicCreate, ClinicUpdate
from bookmyslot.services.clinic_service import (
    create_clinic,
    create_doctor_invite,
    get_clinic,
    list_clinics,
    set_archived,
    update_clinic,
)
from bookmyslot.services.email_service import send_doctor_invite_email

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/clinics", tags=["clinics"])


@router.get("", response_model=list[ClinicPublic])
async def public_clinics(session: AsyncSession = Depends(get_session)) -> list[ClinicPublic]:
    return [clinic_to_public(c) for c in await list_clinics(session)]


@router.get("/all", response_model=list[ClinicPublic])
async def all_clinics(
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> list[ClinicPublic]:
    """Admin listing, archived clinics included."""
    return [clinic_to_public(c) for c in await list_clinics(session, include_archived=True)]


@router.get("/{clinic_id}", response_model=ClinicPublic)
async def clinic_detail(clinic_id: int, session: AsyncSession = Depends(get_session)) -> ClinicPublic:
    clinic = await get_clinic(session, clinic_id)
    if not clinic or clinic.is_archived:
        raise NotFoundError("Clinic not found")
    return clinic_to_public(clinic)


@router.post("", response_model=ClinicPublic, status_code=status.HTTP_201_CREATED)
async def add_clinic(
    body: ClinicCreateRequest,
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> ClinicPublic:
    clinic = await create_clinic(session, ClinicCreate.model_validate(body.model_dump()))
    return clinic_to_public(clinic)


@router.patch("/{clinic_id}", response_model=ClinicPublic)
async def edit_clinic(
    clinic_id: int,
    body: ClinicUpdateRequest,
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> ClinicPublic:
    data = ClinicUpdate.model_validate(body.model_dump(exclude_unset=True))
    return clinic_to_public(await update_clinic(session, clinic_id, data))


@router.patch("/{clinic_id}/archive", response_model=ClinicPublic)
async def archive(
    clinic_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> ClinicPublic:
    return clinic_to_public(await set_archived(session, clinic_id, True))


@router.patch("/{clinic_id}/unarchive", response_model=ClinicPublic)
async def unarchive(
    clinic_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> ClinicPublic:
    return clinic_to_public(await set_archived(session, clinic_id, False))


@router.delete("/{clinic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_clinic(
    clinic_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> Response:
    # Clinics are never hard-deleted
    await set_archived(session, clinic_id, True)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{clinic_id}/doctors/invite", response_model=DoctorInviteResponse)
async def invite_doctor(
    clinic_id: int,
    body: DoctorInviteRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    _admin: Actor = Depends(require_admin),
) -> DoctorInviteResponse:
    clinic, doctor, token = await create_doctor_invite(session, clinic_id, body.email)
    invite_url = f"{settings.frontend_url.rstrip('/')}/setup-password?token={token}"
    background_tasks.add_task(
        send_doctor_invite_email,
        to_email=body.email,
        doctor_name=doctor.get("name") or "",
        clinic_name=clinic.name,
        invite_url=invite_url,
    )
    logger.info("Doctor invite issued for clinic %s", clinic.id)
    return DoctorInviteResponse(message="Invitation sent", invite_url=invite_url, token=token)
