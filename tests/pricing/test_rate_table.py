import pytest

from freightmatch.core.exceptions import ConfigError, ValidationError
from freightmatch.pricing import (
    DEFAULT_RATE_TABLE,
    InMemoryRateRuleStore,
    PricingModel,
    RangeTier,
    RateTable,
    RateTableEntry,
)
from freightmatch.vehicles import FuelType, VehicleType


def linear_entry(**overrides) -> dict:
    entry = {
        "vehicle_type": "pickup",
        "pricing_model": "linear",
        "base_fare_multiplier": 6.0,
        "per_km_multiplier": 0.7,
        "min_fare_multiplier": 6.0,
    }
    entry.update(overrides)
    return entry


@pytest.mark.unit
class TestRateTableEntry:
    def test_select_tier_boundaries(self):
        entry = RateTableEntry(
            vehicle_type=VehicleType.BODA,
            pricing_model=PricingModel.RANGE,
            base_fare_multiplier=0.8,
            per_km_multiplier=0.15,
            min_fare_multiplier=0.8,
            range_tiers=[RangeTier(max_km=3, multiplier=0.8), RangeTier(max_km=7, multiplier=1.5)],
        )

        assert entry.select_tier(0).max_km == 3
        assert entry.select_tier(3).max_km == 3
        assert entry.select_tier(3.5).max_km == 7
        assert entry.select_tier(7).max_km == 7
        assert entry.select_tier(7.01) is None

    def test_fuel_type_defaults_from_vehicle(self):
        assert RateTableEntry(**linear_entry(vehicle_type="boda")).fuel_type == FuelType.PETROL
        assert RateTableEntry(**linear_entry(vehicle_type="fuso")).fuel_type == FuelType.DIESEL

    def test_defaults(self):
        entry = RateTableEntry(**linear_entry())

        assert entry.free_loading_minutes == 45
        assert entry.demurrage_multiplier == 0.1
        assert entry.is_active is True


@pytest.mark.unit
class TestRateTable:
    def test_lookup_returns_active_entry(self, rate_table: RateTable):
        entry = rate_table.lookup(VehicleType.FUSO)

        assert entry.base_fare_multiplier == 28.0
        assert entry.per_km_multiplier == 1.25

    def test_lookup_missing_raises_config_error(self):
        with pytest.raises(ConfigError) as exc_info:
            RateTable().lookup(VehicleType.CANTER)

        assert exc_info.value.details == {"vehicle_type": "canter"}

    def test_find_returns_none_for_missing_or_inactive(self, rate_table: RateTable):
        rate_table.upsert(linear_entry(is_active=False))

        assert rate_table.find(VehicleType.PICKUP) is None
        assert RateTable().find(VehicleType.BODA) is None

    def test_upsert_replaces_existing_rule(self, rate_table: RateTable):
        rate_table.upsert(linear_entry(base_fare_multiplier=9.9))

        assert rate_table.lookup(VehicleType.PICKUP).base_fare_multiplier == 9.9
        assert len(rate_table.entries()) == len(DEFAULT_RATE_TABLE)

    def test_upsert_rejects_range_model_without_tiers(self):
        with pytest.raises(ValidationError) as exc_info:
            RateTable().upsert(linear_entry(pricing_model="range"))

        assert exc_info.value.details["errors"]

    def test_upsert_rejects_unsorted_tiers(self):
        tiers = [{"max_km": 7, "multiplier": 1.5}, {"max_km": 3, "multiplier": 0.8}]

        with pytest.raises(ValidationError):
            RateTable().upsert(linear_entry(pricing_model="range", range_tiers=tiers))

    def test_upsert_rejects_duplicate_tier_bounds(self):
        tiers = [{"max_km": 3, "multiplier": 0.8}, {"max_km": 3, "multiplier": 1.5}]

        with pytest.raises(ValidationError):
            RateTable().upsert(linear_entry(pricing_model="range", range_tiers=tiers))

    @pytest.mark.parametrize(
        "field", ["base_fare_multiplier", "per_km_multiplier", "min_fare_multiplier"]
    )
    def test_upsert_rejects_non_positive_multipliers(self, field):
        with pytest.raises(ValidationError):
            RateTable().upsert(linear_entry(**{field: 0}))

    def test_entries_active_only(self, rate_table: RateTable):
        rate_table.upsert(linear_entry(is_active=False))

        active = {e.vehicle_type for e in rate_table.entries()}
        everything = {e.vehicle_type for e in rate_table.entries(active_only=False)}

        assert VehicleType.PICKUP not in active
        assert everything == set(VehicleType)

    def test_seed_counts_entries(self):
        store = InMemoryRateRuleStore()

        assert RateTable(store).seed() == 6
        assert len(store.list_all()) == 6
