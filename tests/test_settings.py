import pytest
from pydantic import ValidationError

from freightmatch.settings import (
    BillingSettings,
    MatchingSettings,
    OSRMSettings,
    PricingSettings,
    PushSettings,
    Settings,
    get_settings,
)


@pytest.mark.unit
class TestPricingSettings:
    def test_defaults(self):
        settings = PricingSettings()
        assert settings.default_petrol_price == 3200
        assert settings.surge_factor == 1.2
        assert settings.business_margin == 0.05

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("PRICING_SURGE_FACTOR", "1.5")
        monkeypatch.setenv("PRICING_DEFAULT_DIESEL_PRICE", "3400")

        settings = PricingSettings()
        assert settings.surge_factor == 1.5
        assert settings.default_diesel_price == 3400

    def test_validation(self):
        with pytest.raises(ValidationError):
            PricingSettings(surge_factor=0.9)
        with pytest.raises(ValidationError):
            PricingSettings(default_petrol_price=0)


@pytest.mark.unit
class TestMatchingSettings:
    def test_defaults(self):
        settings = MatchingSettings()
        assert settings.h3_resolution == 7
        assert settings.initial_radius_km == 10.0
        assert settings.max_radius_km == 50.0

    def test_max_radius_must_cover_initial(self):
        with pytest.raises(ValidationError):
            MatchingSettings(initial_radius_km=20, max_radius_km=10)

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("MATCHING_ALLOW_LARGER_VEHICLES", "false")
        assert MatchingSettings().allow_larger_vehicles is False


@pytest.mark.unit
class TestOSRMSettings:
    def test_trailing_slash_stripped(self):
        assert OSRMSettings(base_url="http://osrm:5000/").base_url == "http://osrm:5000"

    def test_scheme_required(self):
        with pytest.raises(ValidationError):
            OSRMSettings(base_url="osrm:5000")


@pytest.mark.unit
class TestOtherSettings:
    def test_commission_bounds(self):
        assert BillingSettings().commission_rate == 0.15
        with pytest.raises(ValidationError):
            BillingSettings(commission_rate=1.5)

    def test_push_batch_limit(self):
        with pytest.raises(ValidationError):
            PushSettings(batch_size=500)

    def test_get_settings(self, monkeypatch):
        monkeypatch.setenv("BILLING_COMMISSION_RATE", "0.1")

        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.billing.commission_rate == 0.1
        assert settings.logging.level == "INFO"
