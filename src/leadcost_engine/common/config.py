"""LeadCost-Engine configuration via pydantic-settings."""

import warnings
from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LeadCostSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LEADCOST_")

    environment: str = "development"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/leadcost.db"

    # API
    api_title: str = "LeadCost-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Fixed monthly subscriptions, already in the reporting currency (EUR)
    instantly_monthly_cost: Decimal = Field(default=Decimal("75"), ge=0)
    google_workspace_monthly_cost: Decimal = Field(default=Decimal("48"), ge=0)

    # Variable costs arrive in USD
    usd_to_eur_rate: Decimal = Field(default=Decimal("0.92"), gt=0)

    # Budget and efficiency targets (EUR)
    cost_alert_threshold: Decimal = Field(default=Decimal("200"), ge=0)
    target_cost_per_email: Decimal = Field(default=Decimal("0.10"), gt=0)
    target_cost_per_meeting: Decimal = Field(default=Decimal("5.00"), gt=0)

    # Metrics cache
    cache_ttl_seconds: int = Field(default=60, ge=0)

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_default_model: str = "anthropic/claude-3-haiku"
    openrouter_max_retries: int = Field(default=3, ge=1)
    openrouter_backoff_base: float = Field(default=1.0, ge=0)
    openrouter_timeout: int = 30
    app_url: str = "https://lead-gen-os.vercel.app"

    @property
    def fixed_monthly_cost(self) -> Decimal:
        return self.instantly_monthly_cost + self.google_workspace_monthly_cost

    def validate_for_production(self) -> None:
        """Raise if the metering key is missing outside development."""
        if self.openrouter_api_key:
            return

        if self.environment != "development":
            raise RuntimeError(
                f"LEADCOST_OPENROUTER_API_KEY is not set in '{self.environment}' environment. "
                "Metered AI calls cannot be tracked without it."
            )

        warnings.warn(
            "LEADCOST_OPENROUTER_API_KEY is not set; the OpenRouter client is disabled",
            UserWarning,
            stacklevel=2,
        )


@lru_cache
def get_settings() -> LeadCostSettings:
    settings = LeadCostSettings()
    settings.validate_for_production()
    return settings
