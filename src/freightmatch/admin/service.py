"""Admin operations: rate table seeding, kill switch and reference prices."""

import logging
from typing import Any

from sqlalchemy.orm import sessionmaker

from ..core.exceptions import ValidationError
from ..db.repositories import SystemSettingsRepository
from ..db.repositories.system_settings_repository import (
    DIESEL_PRICE,
    PETROL_PRICE,
    SERVICE_ACTIVE,
    SURGE_ACTIVE,
)
from ..db.transaction import transaction
from ..pricing import DEFAULT_RATE_TABLE, RateTable, RateTableEntry
from ..settings import PricingSettings
from ..trips.models import ServiceStatus
from ..vehicles import FuelType

logger = logging.getLogger(__name__)

_PRICE_KEYS = {FuelType.PETROL: PETROL_PRICE, FuelType.DIESEL: DIESEL_PRICE}


class AdminService:
    def __init__(
        self,
        session_factory: sessionmaker[Any],
        rate_table: RateTable,
        pricing_settings: PricingSettings | None = None,
    ):
        self._session_factory = session_factory
        self._rate_table = rate_table
        self._pricing = pricing_settings or PricingSettings()

    def seed_rate_table(self) -> int:
        """Install default rules for missing vehicle types and default prices.

        Safe to run repeatedly: existing rules and prices are left untouched.
        """
        existing = {e.vehicle_type for e in self._rate_table.entries(active_only=False)}
        seeded = self._rate_table.seed(
            entry for entry in DEFAULT_RATE_TABLE if entry.vehicle_type not in existing
        )
        with self._session_factory() as session, transaction(session):
            settings = SystemSettingsRepository(session)
            defaults = {
                SERVICE_ACTIVE: True,
                SURGE_ACTIVE: False,
                PETROL_PRICE: self._pricing.default_petrol_price,
                DIESEL_PRICE: self._pricing.default_diesel_price,
            }
            for key, value in defaults.items():
                if settings.get(key) is None:
                    settings.set(key, value, updated_by="seed")
        logger.info("Seeded %d rate table entries", seeded)
        return seeded

    def upsert_rate_table_entry(self, entry: RateTableEntry | dict[str, Any]) -> RateTableEntry:
        return self._rate_table.upsert(entry)

    def toggle_service_active(self, active: bool, admin_id: str | None = None) -> None:
        """Kill switch: stops new trip requests; in-flight trips keep progressing."""
        self._set(SERVICE_ACTIVE, active, admin_id)
        logger.warning("Service %s by %s", "resumed" if active else "paused", admin_id or "system")

    def toggle_surge(self, active: bool, admin_id: str | None = None) -> None:
        self._set(SURGE_ACTIVE, active, admin_id)
        logger.info("Peak-hour pricing %s", "enabled" if active else "disabled")

    def set_reference_price(
        self, fuel_type: FuelType, price: int, admin_id: str | None = None
    ) -> None:
        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            raise ValidationError(f"Reference price must be a positive integer, got {price!r}")
        self._set(_PRICE_KEYS[FuelType(fuel_type)], price, admin_id)
        logger.info("%s reference price set to %d TZS", FuelType(fuel_type).value, price)

    def load_service_status(self) -> ServiceStatus:
        with self._session_factory() as session:
            settings = SystemSettingsRepository(session)
            return ServiceStatus(
                accepting_requests=settings.get(SERVICE_ACTIVE, True),
                surge_active=settings.get(SURGE_ACTIVE, False),
                petrol_price=settings.get(PETROL_PRICE, self._pricing.default_petrol_price),
                diesel_price=settings.get(DIESEL_PRICE, self._pricing.default_diesel_price),
            )

    def _set(self, key: str, value: Any, admin_id: str | None) -> None:
        with self._session_factory() as session, transaction(session):
            SystemSettingsRepository(session).set(key, value, updated_by=admin_id)
