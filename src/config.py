from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.constants import BoundaryPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Fleet Reservations API"
    debug: bool = False
    environment: str = "production"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./fleet.db"

    # Security
    secret_key: str = "change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Booking Settings
    default_driver_daily_rate: Decimal = Decimal("2500")
    booking_boundary_policy: BoundaryPolicy = BoundaryPolicy.INCLUSIVE
    max_commit_attempts: int = 3


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
