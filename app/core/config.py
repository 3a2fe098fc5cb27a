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
    database_ssl: bool = False
    # create_all on startup; Alembic is authoritative in production
    auto_create_tables: bool = True

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling rules
    default_timezone: str = "America/New_York"
    # Padding added to a slot's duration before the overlap test
    slot_buffer_minutes: int = 0
    # First key of pg_advisory_xact_lock(namespace, staff_id)
    staff_lock_namespace: int = 7301
    max_appointment_notes_length: int = 2000

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


settings = Settings()
