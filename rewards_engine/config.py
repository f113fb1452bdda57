"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from rewards_engine.domain.models import RewardSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "rewards-engine"
    log_level: str = "INFO"

    # Rewards
    miles_valuation: float = 0.01  # Dollars per mile
    use_rate_ratio: float = 0.8  # Share of the best group rate needed for "use"


settings = Settings()


def settings_from_config(cfg: Optional[Settings] = None) -> RewardSettings:
    """Build the calculator settings from application configuration"""
    cfg = cfg or settings
    return RewardSettings(
        miles_valuation=cfg.miles_valuation,
        use_rate_ratio=cfg.use_rate_ratio,
    )
