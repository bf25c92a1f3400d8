"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/engine.log"

    # Manual trigger endpoint
    cron_api_key: str = Field(
        default="",
        description="Shared secret required by POST /cron/{job_name}"
    )
    trigger_server_host: str = "0.0.0.0"
    trigger_server_port: int = Field(
        default=8082, ge=1, le=65535, description="Manual trigger HTTP server port"
    )
    manual_trigger_error_limit: int = Field(
        default=10, ge=0, description="Errors echoed back by the trigger endpoint"
    )

    # Batch runs
    run_deadline_seconds: int = Field(
        default=3600, gt=0, description="Wall-clock budget for a single pass"
    )
    max_error_details: int = Field(
        default=500, gt=0, description="Max error entries stored per execution"
    )
    profit_recognition_hour: int = Field(
        default=1, ge=0, le=23,
        description="UTC hour on activation_date + 1 stamped as profit_processed_at"
    )

    # Commission configuration
    level_roi_rates: str = Field(
        default="25,10,5,4,3,2,1,1,1,1",
        description="Comma-separated level ROI percentages, level 1 first"
    )
    matrix_income_percent: float = Field(
        default=10.0, ge=0, le=100, description="Placement-tree bonus on purchase"
    )
    referral_bonus_percent: float = Field(
        default=3.0, ge=0, le=100, description="Direct sponsor bonus on purchase"
    )
    provision_percent: float = Field(
        default=40.0, ge=0, le=100,
        description="Share of new member investments distributed as provision"
    )
    capping_multiplier: float | None = Field(
        default=None, gt=0,
        description="Purchase amount multiplier added to capping_limit; unset disables"
    )

    # Schedules (cron expressions, UTC)
    daily_roi_cron: str = "0 1 * * *"
    provision_cron: str = "15 1 * * *"
    level_commission_cron: str = "30 1 * * *"
    team_rewards_cron: str = "0 2 * * *"
    rank_update_cron: str = "30 2 * * *"
    activation_reset_cron: str = "0 4 * * *"
    active_member_rewards_cron: str = "0 0 * * 0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('level_roi_rates')
    @classmethod
    def validate_level_roi_rates(cls, v: str) -> str:
        """Reject empty rate tables early; parsing happens per run."""
        if not v or not v.strip():
            raise ValueError(
                'LEVEL_ROI_RATES must not be empty. '
                'Expected format: 25,10,5,4,3,2,1,1,1,1'
            )
        return v

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )

            if not self.cron_api_key or len(self.cron_api_key) < 16:
                logger.warning(
                    'CRON_API_KEY is missing or shorter than 16 characters. '
                    'Manual pass triggers will be rejected until it is set.'
                )

        return self

    def get_cron_schedules(self) -> dict[str, str]:
        """
        Get cron expression per pass name.

        Returns:
            Mapping of job name to cron expression
        """
        return {
            "daily_roi": self.daily_roi_cron,
            "provision": self.provision_cron,
            "level_commission": self.level_commission_cron,
            "team_rewards": self.team_rewards_cron,
            "rank_update": self.rank_update_cron,
            "activation_reset": self.activation_reset_cron,
            "active_member_rewards": self.active_member_rewards_cron,
        }


# Global settings instance
settings = Settings()
