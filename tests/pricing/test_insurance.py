import pytest

from freightmatch.core.exceptions import ValidationError
from freightmatch.pricing.insurance import calculate_insurance_fee, get_insurance_tier


@pytest.mark.unit
class TestInsurance:
    def test_basic_is_flat(self):
        assert calculate_insurance_fee("basic", 10_000_000) == 500

    @pytest.mark.parametrize(
        ("declared_value", "expected"),
        [(0, 2500), (100_000, 2500), (400_000, 4000), (333_333, 3334)],
    )
    def test_standard_is_value_based_with_minimum(self, declared_value, expected):
        assert calculate_insurance_fee("standard", declared_value) == expected

    def test_corporate_is_included(self):
        assert calculate_insurance_fee("corporate", 1_000_000) == 0

    def test_standard_requires_photo(self):
        assert get_insurance_tier("standard").requires_photo is True
        assert get_insurance_tier("basic").requires_photo is False

    def test_unknown_tier(self):
        with pytest.raises(ValidationError, match="platinum"):
            calculate_insurance_fee("platinum")
