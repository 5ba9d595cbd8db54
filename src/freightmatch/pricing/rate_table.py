"""Per-vehicle rate table: read-mostly lookup with validated admin upserts."""

import logging
from collections.abc import Iterable
from typing import Any, Protocol

import pydantic

from ..core.exceptions import ConfigError, ValidationError
from ..vehicles import VehicleType
from .models import PricingModel, RangeTier, RateTableEntry

logger = logging.getLogger(__name__)


class RateRuleStore(Protocol):
    """Persistence seam for rate table entries."""

    def get(self, vehicle_type: VehicleType) -> RateTableEntry | None: ...

    def save(self, entry: RateTableEntry) -> None: ...

    def list_all(self) -> list[RateTableEntry]: ...


class InMemoryRateRuleStore:
    def __init__(self, entries: Iterable[RateTableEntry] = ()) -> None:
        self._entries: dict[VehicleType, RateTableEntry] = {
            entry.vehicle_type: entry for entry in entries
        }

    def get(self, vehicle_type: VehicleType) -> RateTableEntry | None:
        return self._entries.get(vehicle_type)

    def save(self, entry: RateTableEntry) -> None:
        self._entries[entry.vehicle_type] = entry

    def list_all(self) -> list[RateTableEntry]:
        return list(self._entries.values())


# Multipliers are calibrated against a 3200 TZS/liter reference price.
DEFAULT_RATE_TABLE: tuple[RateTableEntry, ...] = (
    RateTableEntry(
        vehicle_type=VehicleType.BODA,
        pricing_model=PricingModel.RANGE,
        base_fare_multiplier=0.8,
        per_km_multiplier=0.15,
        min_fare_multiplier=0.8,
        range_tiers=[
            RangeTier(max_km=3, multiplier=0.8),
            RangeTier(max_km=7, multiplier=1.5),
        ],
        free_loading_minutes=5,
    ),
    RateTableEntry(
        vehicle_type=VehicleType.TOYO,
        pricing_model=PricingModel.RANGE,
        base_fare_multiplier=1.5,
        per_km_multiplier=0.25,
        min_fare_multiplier=1.5,
        range_tiers=[
            RangeTier(max_km=3, multiplier=1.5),
            RangeTier(max_km=7, multiplier=2.2),
        ],
    ),
    RateTableEntry(
        vehicle_type=VehicleType.KIRIKUU,
        pricing_model=PricingModel.LINEAR,
        base_fare_multiplier=4.7,
        per_km_multiplier=0.5,
        min_fare_multiplier=5.0,
    ),
    RateTableEntry(
        vehicle_type=VehicleType.PICKUP,
        pricing_model=PricingModel.LINEAR,
        base_fare_multiplier=5.4,
        per_km_multiplier=0.6,
        min_fare_multiplier=5.5,
    ),
    RateTableEntry(
        vehicle_type=VehicleType.CANTER,
        pricing_model=PricingModel.LINEAR,
        base_fare_multiplier=14.0,
        per_km_multiplier=0.8,
        min_fare_multiplier=14.0,
    ),
    RateTableEntry(
        vehicle_type=VehicleType.FUSO,
        pricing_model=PricingModel.LINEAR,
        base_fare_multiplier=28.0,
        per_km_multiplier=1.25,
        min_fare_multiplier=28.0,
    ),
)


class RateTable:
    """Lookup of active pricing rules keyed by vehicle type."""

    def __init__(self, store: RateRuleStore | None = None) -> None:
        self._store: RateRuleStore = store if store is not None else InMemoryRateRuleStore()

    def find(self, vehicle_type: VehicleType) -> RateTableEntry | None:
        """Return the active entry for vehicle_type, or None."""
        entry = self._store.get(VehicleType(vehicle_type))
        if entry is None or not entry.is_active:
            return None
        return entry

    def lookup(self, vehicle_type: VehicleType) -> RateTableEntry:
        entry = self.find(vehicle_type)
        if entry is None:
            logger.error("No active pricing rule for vehicle type %s", vehicle_type)
            raise ConfigError(
                f"Pricing rule missing for {VehicleType(vehicle_type).value}",
                details={"vehicle_type": VehicleType(vehicle_type).value},
            )
        return entry

    def upsert(self, entry: RateTableEntry | dict[str, Any]) -> RateTableEntry:
        """Validate and store an entry, replacing any rule for the same vehicle."""
        raw = entry.model_dump() if isinstance(entry, RateTableEntry) else entry
        try:
            validated = RateTableEntry.model_validate(raw)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid rate table entry: {e.error_count()} error(s)",
                details={"errors": e.errors(include_url=False)},
            ) from e

        self._store.save(validated)
        logger.info(
            "Rate table entry upserted for %s (%s model)",
            validated.vehicle_type.value,
            validated.pricing_model.value,
        )
        return validated

    def seed(self, entries: Iterable[RateTableEntry] = DEFAULT_RATE_TABLE) -> int:
        count = 0
        for entry in entries:
            self.upsert(entry)
            count += 1
        return count

    def entries(self, active_only: bool = True) -> list[RateTableEntry]:
        return [e for e in self._store.list_all() if e.is_active or not active_only]
