from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from bookmyslot.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

ACTOR_USER = "user"
ACTOR_ADMIN = "admin"
ACTOR_CLINIC = "clinic"
ACTOR_DOCTOR = "doctor"

ROLE_SUPERUSER = "superuser"


@dataclass(frozen=True)
class Actor:
    """Who is acting and in what role, as carried by an access token."""

    kind: str
    subject: str
    role: str | None = None
    clinic_id: int | None = None
    email: str | None = None


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(actor: Actor) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {
        "sub": actor.subject,
        "kind": actor.kind,
        "role": actor.role,
        "clinic_id": actor.clinic_id,
        "email": actor.email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Actor | None:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    sub = payload.get("sub")
    kind = payload.get("kind")
    if not sub or kind not in (ACTOR_USER, ACTOR_ADMIN, ACTOR_CLINIC, ACTOR_DOCTOR):
        return None
    return Actor(
        kind=kind,
        subject=str(sub),
        role=payload.get("role"),
        clinic_id=payload.get("clinic_id"),
        email=payload.get("email"),
    )


def create_invite_token(clinic_id: int, email: str) -> str:
    expire = datetime.now(UTC) + timedelta(hours=settings.invite_token_expire_hours)
    to_encode = {"sub": email, "clinic_id": clinic_id, "exp": expire, "type": "invite"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_invite_token(token: str) -> tuple[int | None, str | None]:
    """Returns (clinic_id, doctor_email) or (None, None)."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None, None
    if payload.get("type") != "invite":
        return None, None
    return payload.get("clinic_id"), payload.get("sub")
