"""Fare estimation from route metrics and the rate table.

Every component is computed exactly in Decimal against the reference price.
The total is rounded up to whole shillings once, at the end, so it is never
below the raw amount and never over it by a shilling or more. Line items are
reported truncated, with the remainder in rounding_adjustment.
"""

import logging
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

from ..core.exceptions import ValidationError
from ..settings import PricingSettings
from ..vehicles import VehicleType
from .insurance import calculate_insurance_fee
from .models import FareBreakdown, FareOptions, PricingModel, RateTableEntry
from .rate_table import RateTable

logger = logging.getLogger(__name__)


def _dec(value: float | int) -> Decimal:
    # str() keeps 4.7 as 4.7 instead of its binary expansion
    return Decimal(str(value))


def _ceil(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def _floor_optional(value: Decimal | None) -> int | None:
    return None if value is None else _floor(value)


class FareCalculator:
    def __init__(self, rate_table: RateTable, settings: PricingSettings | None = None):
        self.rate_table = rate_table
        self.settings = settings or PricingSettings()

    def estimate(
        self,
        distance_km: float,
        duration_min: float,
        vehicle_type: VehicleType,
        reference_price: int,
        options: FareOptions | None = None,
    ) -> FareBreakdown:
        """Price a trip of distance_km / duration_min for vehicle_type.

        Raises:
            ConfigError: no active rate table entry for vehicle_type
            ValidationError: negative distance or duration, non-positive
                reference price, or a trip longer than the platform maximum
        """
        options = options or FareOptions()
        entry = self.rate_table.lookup(vehicle_type)
        self._validate_inputs(distance_km, duration_min, reference_price)

        ref = _dec(reference_price)
        base, distance = self._moving_charges(entry, _dec(distance_km), ref)
        time = self._time_fare(entry, _dec(duration_min), ref)

        traffic = None
        if options.apply_traffic_buffer:
            traffic = (base + distance) * (_dec(self.settings.traffic_buffer) - 1)

        subtotal = base + distance + (time or 0) + (traffic or 0)

        # Surge applies before the floor clamp, so the floor always wins over it
        peak = None
        if options.peak_hour:
            peak = subtotal * (_dec(self.settings.surge_factor) - 1)
            subtotal += peak

        discount = options.discount or None
        amount = subtotal - (discount or 0)

        minimum = _dec(entry.min_fare_multiplier) * ref
        minimum_adjustment = None
        if amount < minimum:
            minimum_adjustment = minimum - amount
            amount = minimum

        business = None
        if options.is_business:
            business = amount * _dec(self.settings.business_margin)
            amount += business

        insurance = None
        if options.insurance_tier is not None:
            insurance = calculate_insurance_fee(options.insurance_tier, options.declared_value)
            amount += insurance

        # The only rounding step: items are shown truncated, the remainder up
        # to the ceiled total goes on its own line.
        total = _ceil(amount)
        items = {
            "base_fare": _floor(base),
            "distance_fare": _floor(distance),
            "time_fare": _floor_optional(time),
            "traffic_surcharge": _floor_optional(traffic),
            "peak_hour_charge": _floor_optional(peak),
            "minimum_fare_adjustment": _floor_optional(minimum_adjustment),
            "business_margin": _floor_optional(business),
        }
        shown = sum(v for v in items.values() if v is not None) + (insurance or 0)
        rounding = total - (shown - (discount or 0))

        breakdown = FareBreakdown(
            **items,
            insurance=insurance,
            discount=discount,
            rounding_adjustment=rounding or None,
            total=total,
            minimum_fare=_ceil(minimum),
            reference_price=reference_price,
            pricing_model=entry.pricing_model,
        )
        logger.debug(
            "Estimated %s fare for %.2fkm/%.1fmin: %d TZS",
            entry.vehicle_type.value,
            distance_km,
            duration_min,
            breakdown.total,
        )
        return breakdown

    def _validate_inputs(
        self, distance_km: float, duration_min: float, reference_price: int
    ) -> None:
        if distance_km < 0:
            raise ValidationError(f"Distance must be non-negative, got {distance_km}")
        if duration_min < 0:
            raise ValidationError(f"Duration must be non-negative, got {duration_min}")
        if reference_price <= 0:
            raise ValidationError(f"Reference price must be positive, got {reference_price}")
        if distance_km > self.settings.max_trip_distance_km:
            raise ValidationError(
                f"Trip distance exceeds maximum allowed ({self.settings.max_trip_distance_km}km)",
                details={"distance_km": distance_km},
            )

    @staticmethod
    def _moving_charges(
        entry: RateTableEntry, distance_km: Decimal, ref: Decimal
    ) -> tuple[Decimal, Decimal]:
        """(base, distance) charges before rounding."""
        per_km = _dec(entry.per_km_multiplier) * ref

        if entry.pricing_model == PricingModel.LINEAR:
            return _dec(entry.base_fare_multiplier) * ref, per_km * distance_km

        tier = entry.select_tier(float(distance_km))
        if tier is not None:
            return _dec(tier.multiplier) * ref, Decimal(0)

        # Past the last band: the last band's flat price, extended per km
        last = entry.range_tiers[-1]
        return _dec(last.multiplier) * ref, per_km * (distance_km - _dec(last.max_km))

    @staticmethod
    def _time_fare(entry: RateTableEntry, duration_min: Decimal, ref: Decimal) -> Decimal | None:
        """Loading/waiting charge for minutes beyond the free allowance."""
        billable = duration_min - _dec(entry.free_loading_minutes)
        if billable <= 0 or entry.demurrage_multiplier == 0:
            return None
        return billable * _dec(entry.demurrage_multiplier) * ref
