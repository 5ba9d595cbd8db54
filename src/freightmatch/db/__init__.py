"""Database persistence module."""

from .database import init_database
from .schema import Driver, PricingRule, SystemSetting, Trip, UserProfile
from .transaction import transaction

__all__ = [
    "init_database",
    "Driver",
    "PricingRule",
    "SystemSetting",
    "Trip",
    "UserProfile",
    "transaction",
]
