"""Platform admin authentication.

Exactly one strategy is active, chosen once at startup from configuration:
ADMIN_PASSWORD set -> email/password from the environment; otherwise Google
credentials set -> Google sign-in restricted to ADMIN_EMAIL; otherwise admin
login is disabled.
"""
import logging
import secrets

from bookmyslot.core.config import Settings
from bookmyslot.core.errors import ServiceUnavailableError
from bookmyslot.core.security import ACTOR_ADMIN, ROLE_SUPERUSER, Actor
from bookmyslot.services.google_auth_service import (
    exchange_code_for_tokens,
    get_google_authorization_url,
    get_google_user_info,
)

logger = logging.getLogger(__name__)


def _admin_actor(email: str) -> Actor:
    return Actor(kind=ACTOR_ADMIN, subject="admin", role=ROLE_SUPERUSER, email=email)


class AdminAuthenticator:
    name = "disabled"

    async def login(self, email: str, password: str) -> Actor | None:
        raise ServiceUnavailableError("Admin password login is not enabled")

    def authorization_url(self, state: str | None = None) -> str:
        raise ServiceUnavailableError("Admin Google sign-in is not enabled")

    async def complete(self, code: str) -> Actor | None:
        raise ServiceUnavailableError("Admin Google sign-in is not enabled")


class EnvAdminAuthenticator(AdminAuthenticator):
    name = "env"

    def __init__(self, admin_email: str, admin_password: str):
        self.admin_email = admin_email
        self.admin_password = admin_password

    async def login(self, email: str, password: str) -> Actor | None:
        email_ok = secrets.compare_digest(email.strip().lower(), self.admin_email.strip().lower())
        password_ok = secrets.compare_digest(password.encode(), self.admin_password.encode())
        if not (email_ok and password_ok):
            return None
        return _admin_actor(self.admin_email)


class GoogleAdminAuthenticator(AdminAuthenticator):
    name = "google"

    def __init__(self, admin_email: str):
        self.admin_email = admin_email

    def authorization_url(self, state: str | None = None) -> str:
        return get_google_authorization_url(state=state)

    async def complete(self, code: str) -> Actor | None:
        tokens = await exchange_code_for_tokens(code)
        if not tokens or not tokens.get("access_token"):
            return None
        info = await get_google_user_info(tokens["access_token"])
        if not info:
            return None
        email = (info.get("email") or "").lower()
        if not email or email != self.admin_email.lower():
            logger.warning("Google admin sign-in rejected for %s", email or "<no email>")
            return None
        if info.get("verified_email") is False:
            return None
        return _admin_actor(email)


def build_admin_authenticator(settings: Settings) -> AdminAuthenticator:
    if settings.admin_email and settings.admin_password:
        return EnvAdminAuthenticator(settings.admin_email, settings.admin_password)
    if settings.admin_email and settings.google_admin_enabled:
        return GoogleAdminAuthenticator(settings.admin_email)
    return AdminAuthenticator()
