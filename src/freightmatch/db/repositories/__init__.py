"""Repository layer for database CRUD operations."""

from .driver_repository import DriverRepository
from .rate_rule_repository import RateRuleRepository, SessionRateRuleStore
from .system_settings_repository import SystemSettingsRepository
from .trip_repository import TripRepository
from .user_profile_repository import UserProfileRepository

__all__ = [
    "DriverRepository",
    "RateRuleRepository",
    "SessionRateRuleStore",
    "SystemSettingsRepository",
    "TripRepository",
    "UserProfileRepository",
]
