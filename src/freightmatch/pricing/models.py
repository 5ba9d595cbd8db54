"""Rate table entries and fare breakdowns."""

from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, Field, NonNegativeInt, model_validator

from ..vehicles import DEFAULT_FUEL_TYPE, FuelType, VehicleType


class PricingModel(str, Enum):
    RANGE = "range"  # flat price per distance band
    LINEAR = "linear"  # base + per-km


class RangeTier(BaseModel):
    max_km: float = Field(gt=0)
    multiplier: float = Field(gt=0)


class RateTableEntry(BaseModel):
    """Per-vehicle pricing parameters.

    All multipliers are applied against a volatile reference price (the
    current fuel price for the vehicle's fuel type) so fares follow input
    costs without a redeploy.
    """

    vehicle_type: VehicleType
    pricing_model: PricingModel
    base_fare_multiplier: float = Field(gt=0)
    per_km_multiplier: float = Field(gt=0)
    min_fare_multiplier: float = Field(gt=0)
    range_tiers: list[RangeTier] = Field(default_factory=list)
    free_loading_minutes: float = Field(default=45, ge=0)
    demurrage_multiplier: float = Field(default=0.1, ge=0)
    fuel_type: FuelType
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def default_fuel_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("fuel_type") is None and "vehicle_type" in data:
            data = {**data, "fuel_type": DEFAULT_FUEL_TYPE[VehicleType(data["vehicle_type"])]}
        return data

    @model_validator(mode="after")
    def validate_tiers(self) -> Self:
        if self.pricing_model == PricingModel.RANGE and not self.range_tiers:
            raise ValueError(
                f"{self.vehicle_type.value}: range pricing requires at least one tier"
            )
        bounds = [tier.max_km for tier in self.range_tiers]
        if any(lower >= upper for lower, upper in zip(bounds, bounds[1:], strict=False)):
            raise ValueError(
                f"{self.vehicle_type.value}: range tiers must be sorted ascending by max_km"
            )
        return self

    def select_tier(self, distance_km: float) -> RangeTier | None:
        """First tier whose max_km covers the distance; boundaries belong to the lower tier."""
        for tier in self.range_tiers:
            if distance_km <= tier.max_km:
                return tier
        return None


class FareOptions(BaseModel):
    """Per-request switches for optional fare components."""

    peak_hour: bool = False
    apply_traffic_buffer: bool = False
    is_business: bool = False
    discount: NonNegativeInt = 0
    insurance_tier: str | None = None
    declared_value: NonNegativeInt = 0


class FareBreakdown(BaseModel):
    """Itemized fare in whole shillings.

    Components are shown truncated; rounding_adjustment carries the
    difference up to the total, which is the exact fare rounded up once.

    total == sum of every present charge component - discount, and the
    non-insurance part of total is never below the minimum fare.
    """

    base_fare: int
    distance_fare: int
    time_fare: int | None = None
    traffic_surcharge: int | None = None
    peak_hour_charge: int | None = None
    minimum_fare_adjustment: int | None = None
    business_margin: int | None = None
    insurance: int | None = None
    discount: int | None = None
    rounding_adjustment: int | None = None
    total: int
    minimum_fare: int
    reference_price: int
    pricing_model: PricingModel
    currency: str = "TZS"

    @property
    def charges(self) -> int:
        components = (
            self.base_fare,
            self.distance_fare,
            self.time_fare,
            self.traffic_surcharge,
            self.peak_hour_charge,
            self.minimum_fare_adjustment,
            self.business_margin,
            self.insurance,
            self.rounding_adjustment,
        )
        return sum(c for c in components if c is not None)

    @model_validator(mode="after")
    def validate_total(self) -> Self:
        expected = self.charges - (self.discount or 0)
        if self.total != expected:
            raise ValueError(f"total {self.total} does not match itemized sum {expected}")
        if self.total - (self.insurance or 0) < self.minimum_fare:
            raise ValueError(f"total {self.total} is below the minimum fare {self.minimum_fare}")
        return self
