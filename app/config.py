"""Application configuration."""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str

    # API Security
    api_secret_key: str

    # Webhooks
    webhook_secret: str
    webhook_max_drift_ms: int = 5 * 60 * 1000

    # Ledger
    commission_hold_days: int = 7
    pilot_event_type: str = "CPA"
    default_currency: str = "EUR"

    # Background derivation
    derivation_enabled: bool = True
    derivation_interval_minutes: int = 5

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite (tests, local dev)."""
        return self.database_url.startswith("sqlite")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
