from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PricingSettings(BaseSettings):
    """Reference prices and fare adjustment factors."""

    default_petrol_price: int = Field(
        default=3200,
        gt=0,
        description="Petrol price per liter (TZS) used until an admin sets one",
    )
    default_diesel_price: int = Field(
        default=3100,
        gt=0,
        description="Diesel price per liter (TZS) used until an admin sets one",
    )
    surge_factor: float = Field(
        default=1.2,
        ge=1.0,
        le=3.0,
        description="Peak-hour multiplier applied to the pre-floor subtotal",
    )
    traffic_buffer: float = Field(
        default=1.15,
        ge=1.0,
        le=2.0,
        description="Traffic safety buffer on moving charges (1.15 = 15%)",
    )
    business_margin: float = Field(
        default=0.05,
        ge=0.0,
        le=0.5,
        description="Margin added to business (organization wallet) trips",
    )
    max_trip_distance_km: float = Field(default=500.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="PRICING_")


class MatchingSettings(BaseSettings):
    """Driver search radius and vehicle compatibility configuration."""

    h3_resolution: int = Field(
        default=7,
        ge=4,
        le=10,
        description="H3 resolution of the driver location cells (7 = ~1.4km edge)",
    )
    initial_radius_km: float = Field(default=10.0, gt=0)
    radius_growth_factor: float = Field(default=2.0, gt=1.0, le=4.0)
    max_radius_km: float = Field(
        default=50.0,
        gt=0,
        description="Hard cap for radius expansion before reporting no drivers",
    )
    allow_larger_vehicles: bool = Field(
        default=True,
        description="Offer the request to larger vehicle classes when no exact match is near",
    )
    max_vehicle_upgrade_steps: int = Field(default=1, ge=0, le=5)

    model_config = SettingsConfigDict(env_prefix="MATCHING_")

    @model_validator(mode="after")
    def validate_radius_bounds(self) -> "MatchingSettings":
        if self.max_radius_km < self.initial_radius_km:
            raise ValueError(
                f"max_radius_km ({self.max_radius_km}) must be >= "
                f"initial_radius_km ({self.initial_radius_km})"
            )
        return self


class OSRMSettings(BaseSettings):
    base_url: str = "http://localhost:5000"
    timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="OSRM_")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("OSRM base URL must start with http:// or https://")
        return v.rstrip("/")


class PushSettings(BaseSettings):
    enabled: bool = True
    endpoint: str = "https://exp.host/--/api/v2/push/send"
    batch_size: int = Field(default=100, ge=1, le=100)
    timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="PUSH_")


class BillingSettings(BaseSettings):
    commission_rate: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Platform commission deducted from the final fare",
    )

    model_config = SettingsConfigDict(env_prefix="BILLING_")


class DatabaseSettings(BaseSettings):
    url: str = "sqlite:///freightmatch.db"

    model_config = SettingsConfigDict(env_prefix="DB_")


class LoggingSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["text", "json"] = "text"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    osrm: OSRMSettings = Field(default_factory=OSRMSettings)
    push: PushSettings = Field(default_factory=PushSettings)
    billing: BillingSettings = Field(default_factory=BillingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
