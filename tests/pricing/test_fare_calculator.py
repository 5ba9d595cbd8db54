import pytest

from freightmatch.core.exceptions import ConfigError, ValidationError
from freightmatch.pricing import FareCalculator, FareOptions, PricingModel, RateTable
from freightmatch.settings import PricingSettings
from freightmatch.vehicles import VehicleType

REF = 3200


@pytest.mark.unit
class TestLinearPricing:
    def test_kirikuu_ten_km_scenario(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(10, 30, VehicleType.KIRIKUU, REF)

        assert fare.base_fare == 15040
        assert fare.distance_fare == 16000
        assert fare.time_fare is None
        assert fare.total == 31040
        assert fare.pricing_model == PricingModel.LINEAR
        assert fare.currency == "TZS"

    def test_total_never_below_minimum_fare(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(0, 0, VehicleType.KIRIKUU, REF)

        assert fare.minimum_fare == 16000
        assert fare.minimum_fare_adjustment == 960
        assert fare.total == 16000

    @pytest.mark.parametrize("vehicle_type", [VehicleType.CANTER, VehicleType.FUSO])
    def test_floor_holds_for_short_trips(self, fare_calculator: FareCalculator, vehicle_type):
        fare = fare_calculator.estimate(0.2, 5, vehicle_type, REF)

        assert fare.total >= fare.minimum_fare

    def test_fractional_amounts_round_up_once(self, fare_calculator: FareCalculator):
        # 4.7 x 3100 + 0.5 x 3100 x 3.33 = 14570 + 5161.5
        fare = fare_calculator.estimate(3.33, 10, VehicleType.KIRIKUU, 3100)

        assert fare.distance_fare == 5161
        assert fare.rounding_adjustment == 1
        assert fare.total == 19732

    def test_fractional_items_do_not_overcharge(self, fare_calculator: FareCalculator):
        # 5.4 x 3101 + 0.6 x 3101 = 16745.4 + 1860.6 = 18606 exactly
        fare = fare_calculator.estimate(1, 0, VehicleType.PICKUP, 3101)

        assert (fare.base_fare, fare.distance_fare) == (16745, 1860)
        assert fare.rounding_adjustment == 1
        assert fare.total == 18606

    def test_surge_uses_unrounded_subtotal(self, fare_calculator: FareCalculator):
        # (14570 + 5161.5) x 1.2 = 23677.8
        fare = fare_calculator.estimate(
            3.33, 10, VehicleType.KIRIKUU, 3100, FareOptions(peak_hour=True)
        )

        assert fare.peak_hour_charge == 3946
        assert fare.total == 23678

    def test_whole_shilling_fare_has_no_adjustment(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(10, 30, VehicleType.KIRIKUU, REF)

        assert fare.rounding_adjustment is None


@pytest.mark.unit
class TestRangePricing:
    @pytest.mark.parametrize(
        ("distance_km", "expected"),
        [
            (1.0, 2560),
            (3.0, 2560),
            (3.0001, 4800),
            (7.0, 4800),
        ],
    )
    def test_tier_boundaries_are_inclusive(
        self, fare_calculator: FareCalculator, distance_km, expected
    ):
        fare = fare_calculator.estimate(distance_km, 0, VehicleType.BODA, REF)

        assert fare.base_fare == expected
        assert fare.distance_fare == 0
        assert fare.total == expected

    def test_last_tier_extends_linearly(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(10, 0, VehicleType.BODA, REF)

        assert fare.base_fare == 4800
        # 3km past the last tier at 0.15 x 3200 per km
        assert fare.distance_fare == 1440
        assert fare.total == 6240

    def test_range_fare_is_monotonic_across_tiers(self, fare_calculator: FareCalculator):
        totals = [
            fare_calculator.estimate(km, 0, VehicleType.TOYO, REF).total
            for km in (1, 3, 5, 7, 8, 20)
        ]

        assert totals == sorted(totals)


@pytest.mark.unit
class TestOptionalComponents:
    def test_time_fare_after_free_loading(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(10, 60, VehicleType.KIRIKUU, REF)

        # 15 minutes past the 45 free, at 0.1 x 3200 per minute
        assert fare.time_fare == 4800
        assert fare.total == 35840

    def test_boda_free_loading_is_shorter(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(2, 10, VehicleType.BODA, REF)

        assert fare.time_fare == 1600

    def test_traffic_buffer(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(
            10, 30, VehicleType.KIRIKUU, REF, FareOptions(apply_traffic_buffer=True)
        )

        assert fare.traffic_surcharge == 4656
        assert fare.total == 35696

    def test_peak_hour_charge(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(
            10, 30, VehicleType.KIRIKUU, REF, FareOptions(peak_hour=True)
        )

        assert fare.peak_hour_charge == 6208
        assert fare.total == 37248

    def test_business_margin(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(
            10, 30, VehicleType.KIRIKUU, REF, FareOptions(is_business=True)
        )

        assert fare.business_margin == 1552
        assert fare.total == 32592

    def test_insurance_added_after_floor(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(
            0,
            0,
            VehicleType.KIRIKUU,
            REF,
            FareOptions(insurance_tier="standard", declared_value=400_000),
        )

        assert fare.insurance == 4000
        assert fare.total == 16000 + 4000

    def test_discount_cannot_break_the_floor(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(
            10, 30, VehicleType.KIRIKUU, REF, FareOptions(discount=20_000)
        )

        assert fare.discount == 20_000
        assert fare.minimum_fare_adjustment == 4960
        assert fare.total == 16000

    def test_total_equals_itemized_sum(self, fare_calculator: FareCalculator):
        fare = fare_calculator.estimate(
            23.7,
            71,
            VehicleType.CANTER,
            3100,
            FareOptions(
                peak_hour=True,
                apply_traffic_buffer=True,
                is_business=True,
                discount=1000,
                insurance_tier="basic",
            ),
        )

        assert fare.total == fare.charges - fare.discount

    def test_custom_surge_factor(self, rate_table: RateTable):
        calculator = FareCalculator(rate_table, PricingSettings(surge_factor=1.5))

        fare = calculator.estimate(10, 30, VehicleType.KIRIKUU, REF, FareOptions(peak_hour=True))

        assert fare.peak_hour_charge == 15520


@pytest.mark.unit
class TestEstimateErrors:
    def test_missing_rule_raises_config_error(self):
        calculator = FareCalculator(RateTable())

        with pytest.raises(ConfigError, match="kirikuu"):
            calculator.estimate(10, 30, VehicleType.KIRIKUU, REF)

    def test_inactive_rule_raises_config_error(
        self, rate_table: RateTable, fare_calculator: FareCalculator
    ):
        entry = rate_table.lookup(VehicleType.CANTER)
        rate_table.upsert(entry.model_copy(update={"is_active": False}))

        with pytest.raises(ConfigError):
            fare_calculator.estimate(10, 30, VehicleType.CANTER, REF)

    @pytest.mark.parametrize(
        ("distance", "duration", "ref"),
        [(-1, 10, REF), (10, -1, REF), (10, 10, 0), (501, 10, REF)],
    )
    def test_invalid_inputs(self, fare_calculator: FareCalculator, distance, duration, ref):
        with pytest.raises(ValidationError):
            fare_calculator.estimate(distance, duration, VehicleType.KIRIKUU, ref)
