from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.core.errors import ValidationFailedError
from bookmyslot.core.security import (
    ACTOR_CLINIC,
    ACTOR_DOCTOR,
    ACTOR_USER,
    Actor,
    create_access_token,
    hash_password,
    verify_password,
)
from bookmyslot.core.config import settings
from bookmyslot.models.clinic import Clinic
from bookmyslot.models.user import ROLE_CUSTOMER, ROLE_OWNER, User, UserCreate


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    if data.role not in (ROLE_CUSTOMER, ROLE_OWNER):
        raise ValidationFailedError("Role must be customer or owner", field="role")
    user = User(
        email=data.email.lower(),
        full_name=data.full_name,
        role=data.role,
        hashed_password=hash_password(data.password),
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_actor(user: User) -> Actor:
    return Actor(kind=ACTOR_USER, subject=str(user.id), role=user.role, email=user.email)


def clinic_actor(clinic: Clinic) -> Actor:
    return Actor(kind=ACTOR_CLINIC, subject=str(clinic.id), role=ACTOR_CLINIC, clinic_id=clinic.id)


def doctor_actor(clinic: Clinic, doctor_email: str) -> Actor:
    return Actor(
        kind=ACTOR_DOCTOR,
        subject=doctor_email,
        role=ACTOR_DOCTOR,
        clinic_id=clinic.id,
        email=doctor_email,
    )


def issue_token(actor: Actor) -> tuple[str, int]:
    return create_access_token(actor), settings.access_token_expire_minutes * 60


async def login_user(session: AsyncSession, email: str, password: str) -> tuple[User, str, int] | None:
    user = await get_user_by_email(session, email)
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    access, expires_in = issue_token(user_actor(user))
    return user, access, expires_in


async def signup_user(
    session: AsyncSession, email: str, password: str, full_name: str | None = None, role: str = ROLE_CUSTOMER
) -> tuple[User, str, int] | None:
    existing = await get_user_by_email(session, email)
    if existing:
        return None
    user = await create_user(
        session, UserCreate(email=email, password=password, full_name=full_name, role=role)
    )
    access, expires_in = issue_token(user_actor(user))
    return user, access, expires_in
