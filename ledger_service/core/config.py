"""Application configuration using pydantic settings."""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    project_name: str = "Ledger Service - Session Settlement"
    database_url: str = "sqlite:///./ledger_service/db/ledger_service.db"
    log_level: str = "INFO"

    balance_tolerance: Decimal = Field(default=Decimal("0.01"), ge=0)
    min_active_players: int = Field(default=2, ge=1)
    # Auto-balance unbalanced sessions on completion instead of rejecting them
    auto_balance_on_complete: bool = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
