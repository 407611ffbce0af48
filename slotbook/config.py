# slotbook/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/slotbook.db"
    redis_url: str = "redis://localhost:6379/0"

    # Single-tenant: every event type, schedule and booking belongs to this host
    host_id: int = 1

    default_timezone: str = "Asia/Kolkata"
    booking_horizon_days: int = 60

    lock_wait_seconds: float = 5.0
    lock_ttl_seconds: float = 10.0

    resend_api_key: str | None = None
    mail_from: str = "Slotbook <noreply@example.com>"
    frontend_url: str = "http://localhost:5173"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
