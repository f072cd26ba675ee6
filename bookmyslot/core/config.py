from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = True

    # JWT
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    invite_token_expire_hours: int = 72
    bcrypt_rounds: int = 12

    # CORS
    cors_origins: str = "http://localhost:5173"
    frontend_url: str = "http://localhost:5173"

    # Platform admin. ADMIN_PASSWORD selects the env strategy, Google credentials the OIDC one.
    admin_email: str = ""
    admin_password: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""

    # Booking business rules
    max_bookings_per_slot: int = 3
    capacity_window_seconds: int = 60
    verification_code_ttl_minutes: int = 10
    # Slots created before clinic ids existed only carry clinic_name
    legacy_clinic_name_matching: bool = True
    pending_sweep_enabled: bool = True
    pending_sweep_interval_seconds: int = 15 * 60

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "BookMySlot"
    site_name: str = "BookMySlot"
    contact_email: str = ""

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)

    @property
    def google_admin_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_redirect_uri)


settings = Settings()
