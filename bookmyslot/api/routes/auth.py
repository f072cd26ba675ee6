import logging
from urllib.parse import urlencode
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.deps import get_admin_authenticator, get_current_actor, get_current_clinic
from bookmyslot.api.presenters import clinic_to_public
from bookmyslot.api.schemas.auth import (
    ActorPublic,
    AdminLoginResponse,
    ClinicLoginRequest,
    DoctorLoginResponse,
    DoctorSession,
    InviteInfo,
    LoginRequest,
    SetupPasswordRequest,
    SignupRequest,
    TokenResponse,
)
from bookmyslot.api.schemas.base import MessageResponse
from bookmyslot.api.schemas.clinic import ClinicLoginResponse, ClinicPublic
from bookmyslot.core.config import settings
from bookmyslot.core.db import get_session
from bookmyslot.core.security import ACTOR_DOCTOR, Actor
from bookmyslot.models.clinic import Clinic
from bookmyslot.services.admin_auth_service import AdminAuthenticator
from bookmyslot.services.auth_service import (
    clinic_actor,
    doctor_actor,
    issue_token,
    login_user,
    signup_user,
)
from bookmyslot.services.clinic_service import (
    authenticate_clinic,
    authenticate_doctor,
    clinic_doctors,
    get_clinic,
    resolve_invite,
    setup_doctor_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class AdminLoginRequest(BaseModel):
    email: str
    password: str


def _invalid_credentials() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")


# --- Customer / owner accounts ---

@router.post("/signup", response_model=TokenResponse)
async def signup(
    body: SignupRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    full_name = body.full_name or body.name
    result = await signup_user(session, body.email, body.password, full_name, role=body.role)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    _, access, expires_in = result
    return TokenResponse(access_token=access, expires_in=expires_in)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    result = await login_user(session, body.email, body.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    _, access, expires_in = result
    return TokenResponse(access_token=access, expires_in=expires_in)


@router.get("/user", response_model=ActorPublic)
async def current_actor(actor: Actor = Depends(get_current_actor)) -> ActorPublic:
    return ActorPublic(
        id=actor.subject,
        kind=actor.kind,
        role=actor.role,
        email=actor.email,
        clinic_id=actor.clinic_id,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    # Tokens are stateless; the client discards its copy
    return MessageResponse(message="Logged out")


# --- Platform admin ---

@router.post("/admin/login", response_model=AdminLoginResponse)
async def admin_login(
    body: AdminLoginRequest,
    authenticator: AdminAuthenticator = Depends(get_admin_authenticator),
) -> AdminLoginResponse:
    actor = await authenticator.login(body.email, body.password)
    if not actor:
        raise _invalid_credentials()
    access, expires_in = issue_token(actor)
    logger.info("Admin login via %s strategy", authenticator.name)
    return AdminLoginResponse(
        access_token=access,
        expires_in=expires_in,
        id=actor.subject,
        email=actor.email,
        role=actor.role,
    )


@router.post("/admin/logout", response_model=MessageResponse)
async def admin_logout() -> MessageResponse:
    return MessageResponse(message="Logged out")


@router.get("/admin/google")
async def admin_google_login(
    authenticator: AdminAuthenticator = Depends(get_admin_authenticator),
) -> dict:
    return {"authorizationUrl": authenticator.authorization_url(state=str(uuid4()))}


@router.get("/admin/google/callback")
async def admin_google_callback(
    code: str = Query(...),
    authenticator: AdminAuthenticator = Depends(get_admin_authenticator),
) -> RedirectResponse:
    actor = await authenticator.complete(code)
    if not actor:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Google account is not authorized for admin access",
        )
    access, expires_in = issue_token(actor)
    fragment = urlencode({"access_token": access, "expires_in": str(expires_in)})
    return RedirectResponse(url=f"{settings.frontend_url.rstrip('/')}/admin#{fragment}", status_code=302)


# --- Clinic accounts ---

@router.post("/clinic/login", response_model=ClinicLoginResponse)
async def clinic_login(
    body: ClinicLoginRequest,
    session: AsyncSession = Depends(get_session),
) -> ClinicLoginResponse:
    clinic = await authenticate_clinic(session, body.username, body.password)
    if not clinic:
        raise _invalid_credentials()
    access, expires_in = issue_token(clinic_actor(clinic))
    return ClinicLoginResponse(access_token=access, expires_in=expires_in, clinic=clinic_to_public(clinic))


@router.get("/clinic/me", response_model=ClinicPublic)
async def clinic_me(clinic: Clinic = Depends(get_current_clinic)) -> ClinicPublic:
    return clinic_to_public(clinic)


@router.post("/clinic/logout", response_model=MessageResponse)
async def clinic_logout() -> MessageResponse:
    return MessageResponse(message="Logged out")


# --- Doctors ---

def _doctor_session(clinic, doctor: dict) -> DoctorSession:
    return DoctorSession(
        email=doctor.get("email") or "",
        name=doctor.get("name") or "",
        specialization=doctor.get("specialization"),
        degree=doctor.get("degree"),
        clinic_id=clinic.id,
        clinic_name=clinic.name,
        logo_url=clinic.logo_url,
    )


@router.post("/doctor/login", response_model=DoctorLoginResponse)
async def doctor_login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> DoctorLoginResponse:
    found = await authenticate_doctor(session, body.email, body.password)
    if not found:
        raise _invalid_credentials()
    clinic, doctor = found
    access, expires_in = issue_token(doctor_actor(clinic, doctor["email"]))
    return DoctorLoginResponse(access_token=access, expires_in=expires_in, doctor=_doctor_session(clinic, doctor))


@router.get("/doctor/me", response_model=DoctorSession)
async def doctor_me(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> DoctorSession:
    if actor.kind != ACTOR_DOCTOR:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Doctor login required")
    clinic = await get_clinic(session, actor.clinic_id)
    doctor = None
    if clinic and not clinic.is_archived:
        doctor = next((d for d in clinic_doctors(clinic) if d.get("email") == actor.subject), None)
    if not doctor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Doctor not found")
    return _doctor_session(clinic, doctor)


@router.post("/doctor/logout", response_model=MessageResponse)
async def doctor_logout() -> MessageResponse:
    return MessageResponse(message="Logged out")


@router.get("/verify-invite", response_model=InviteInfo)
async def verify_invite(
    token: str = Query(...),
    session: AsyncSession = Depends(get_session),
) -> InviteInfo:
    clinic, doctor = await resolve_invite(session, token)
    return InviteInfo(
        email=doctor.get("email") or "",
        name=doctor.get("name") or "",
        clinic_id=clinic.id,
        clinic_name=clinic.name,
    )


@router.post("/setup-password", response_model=MessageResponse)
async def setup_password(
    body: SetupPasswordRequest,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await setup_doctor_password(session, body.token, body.password)
    return MessageResponse(message="Password set. You can now log in.")
