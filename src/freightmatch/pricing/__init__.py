"""Rate table, insurance tiers and fare estimation."""

from .fare_calculator import FareCalculator
from .models import FareBreakdown, FareOptions, PricingModel, RangeTier, RateTableEntry
from .rate_table import DEFAULT_RATE_TABLE, InMemoryRateRuleStore, RateTable

__all__ = [
    "DEFAULT_RATE_TABLE",
    "FareBreakdown",
    "FareCalculator",
    "FareOptions",
    "InMemoryRateRuleStore",
    "PricingModel",
    "RangeTier",
    "RateTable",
    "RateTableEntry",
]
