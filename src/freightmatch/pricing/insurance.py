"""Cargo insurance tiers."""

import math
from dataclasses import dataclass

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class InsuranceTier:
    tier_id: str
    name: str
    fee: int
    coverage_limit: int
    requires_photo: bool = False
    value_rate: float | None = None  # share of declared value charged, if value-based


INSURANCE_TIERS: dict[str, InsuranceTier] = {
    "basic": InsuranceTier(
        tier_id="basic",
        name="Basic Coverage",
        fee=500,
        coverage_limit=50_000,
    ),
    "standard": InsuranceTier(
        tier_id="standard",
        name="Standard Protection",
        fee=2500,
        coverage_limit=1_000_000,
        requires_photo=True,
        value_rate=0.01,
    ),
    # Included in business rates
    "corporate": InsuranceTier(
        tier_id="corporate",
        name="Corporate Shield",
        fee=0,
        coverage_limit=5_000_000,
    ),
}


def get_insurance_tier(tier_id: str) -> InsuranceTier:
    try:
        return INSURANCE_TIERS[tier_id]
    except KeyError:
        raise ValidationError(
            f"Unknown insurance tier: {tier_id}",
            details={"known_tiers": sorted(INSURANCE_TIERS)},
        ) from None


def calculate_insurance_fee(tier_id: str, declared_value: int = 0) -> int:
    """Flat fee, or max(flat minimum, declared_value x rate) for value-based tiers."""
    tier = get_insurance_tier(tier_id)
    if tier.value_rate is not None and declared_value > 0:
        return max(tier.fee, math.ceil(declared_value * tier.value_rate))
    return tier.fee
