"""Helpers shared by the API tests."""

from bookmyslot.core.security import ACTOR_ADMIN, ROLE_SUPERUSER, Actor, create_access_token
from bookmyslot.services.auth_service import clinic_actor, doctor_actor, user_actor


def bearer(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor)}"}


def user_headers(user) -> dict[str, str]:
    return bearer(user_actor(user))


def clinic_headers(clinic) -> dict[str, str]:
    return bearer(clinic_actor(clinic))


def doctor_headers(clinic, email: str) -> dict[str, str]:
    return bearer(doctor_actor(clinic, email))


def admin_headers() -> dict[str, str]:
    return bearer(Actor(kind=ACTOR_ADMIN, subject="admin", role=ROLE_SUPERUSER, email="admin@example.com"))


def public_booking_body(clinic_id: int, start: str = "2025-03-10T09:00:00Z", end: str = "2025-03-10T09:30:00Z", **overrides) -> dict:
    body = {
        "customerName": "Jane Doe",
        "customerPhone": "+15550100",
        "customerEmail": "jane@example.com",
        "clinicId": clinic_id,
        "startTime": start,
        "endTime": end,
    }
    body.update(overrides)
    return body
