"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_BASE_PATH = Path(os.environ.get(
    "TREASURY_BASE_PATH",
    Path.home() / "Documents" / "treasury",
))
ENV_FILE_PATH = APP_BASE_PATH / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: str = Field(default="development")
    app_debug: bool = Field(default=False)
    app_log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Matching
    amount_tolerance_cents: int = Field(default=1)
    text_similarity_threshold: float = Field(default=0.85)
    aging_auto_accept_threshold: float = Field(default=0.8)
    forecast_auto_accept_threshold: float = Field(default=0.7)
    payroll_auto_accept_threshold: float = Field(default=0.8)
    intercompany_auto_accept_threshold: float = Field(default=0.8)
    cash_forecast_auto_accept_threshold: float = Field(default=0.7)
    deposit_auto_accept_threshold: float = Field(default=0.8)

    # Extraction heuristics (cents)
    intercompany_min_amount_cents: int = Field(default=10_000_000)

    # Time deposits / investment planning (cents)
    minimum_buffer_cents: int = Field(default=100_000_000)
    minimum_investment_cents: int = Field(default=50_000_000)
    maximum_investment_percentage: int = Field(default=80)
    obligation_horizon_days: int = Field(default=90)
    default_interest_rate: float = Field(default=4.0)
    default_deposit_term_days: int = Field(default=30)
    # 0 = Monday ... 6 = Sunday
    weekend_days: List[int] = Field(default_factory=lambda: [4, 5])

    # Optional LLM classifier
    classifier_enabled: bool = Field(default=False)
    classifier_url: str = Field(default="http://localhost:11434")
    classifier_model: str = Field(default="qwen2.5:3b")
    classifier_timeout_seconds: float = Field(default=3.0)
    categorization_confidence_floor: float = Field(default=0.6)

    # Storage
    data_dir: Path = Field(default=APP_BASE_PATH / "data")
    reports_dir: Path = Field(default=APP_BASE_PATH / "data" / "reports")
    log_dir: Path = Field(default=APP_BASE_PATH / "logs")

    def auto_accept_threshold(self, variant: str) -> float:
        """Return the auto-accept threshold configured for a reference variant."""
        return getattr(self, f"{variant}_auto_accept_threshold")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
