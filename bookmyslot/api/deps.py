from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.core.db import get_session
from bookmyslot.core.security import ACTOR_ADMIN, ACTOR_CLINIC, ACTOR_DOCTOR, ACTOR_USER, Actor, decode_access_token
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.user import User
from bookmyslot.services.admin_auth_service import AdminAuthenticator
from bookmyslot.services.auth_service import get_user
from bookmyslot.services.clinic_service import get_clinic

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_optional_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Actor | None:
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return decode_access_token(credentials.credentials)


async def get_current_actor(actor: Actor | None = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise _unauthorized("Unauthorized")
    return actor


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> User:
    if actor.kind != ACTOR_USER:
        raise _unauthorized("User login required")
    try:
        uid = int(actor.subject)
    except ValueError:
        raise _unauthorized("Invalid token")
    user = await get_user(session, uid)
    if not user:
        raise _unauthorized("User not found")
    return user


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.kind != ACTOR_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return actor


async def _load_session_clinic(session: AsyncSession, actor: Actor) -> Clinic:
    clinic = await get_clinic(session, actor.clinic_id) if actor.clinic_id else None
    if not clinic or clinic.is_archived:
        raise _unauthorized("Clinic not found")
    return clinic


async def get_current_clinic(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> Clinic:
    if actor.kind != ACTOR_CLINIC:
        raise _unauthorized("Unauthorized - Clinic login required")
    return await _load_session_clinic(session, actor)


async def get_clinic_staff(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> Clinic:
    """Clinic account or one of its doctors."""
    if actor.kind not in (ACTOR_CLINIC, ACTOR_DOCTOR):
        raise _unauthorized("Unauthorized - Clinic login required")
    return await _load_session_clinic(session, actor)


def get_admin_authenticator(request: Request) -> AdminAuthenticator:
    return request.app.state.admin_authenticator
