"""Pricing rule persistence backing the rate table."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ...pricing.models import RateTableEntry
from ...vehicles import VehicleType
from ..schema import PricingRule
from ..transaction import transaction


class RateRuleRepository:
    """Repository for pricing_rules rows, one per vehicle type."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, vehicle_type: VehicleType) -> RateTableEntry | None:
        row = self.session.get(PricingRule, VehicleType(vehicle_type).value)
        if row is None:
            return None
        return self._to_domain(row)

    def save(self, entry: RateTableEntry) -> None:
        data = entry.model_dump(mode="json")
        row = self.session.get(PricingRule, data["vehicle_type"])
        if row is None:
            self.session.add(PricingRule(**data))
            return
        for field, value in data.items():
            setattr(row, field, value)

    def list_all(self) -> list[RateTableEntry]:
        stmt = select(PricingRule).order_by(PricingRule.vehicle_type)
        return [self._to_domain(r) for r in self.session.execute(stmt).scalars().all()]

    @staticmethod
    def _to_domain(row: PricingRule) -> RateTableEntry:
        return RateTableEntry(
            vehicle_type=VehicleType(row.vehicle_type),
            pricing_model=row.pricing_model,
            base_fare_multiplier=row.base_fare_multiplier,
            per_km_multiplier=row.per_km_multiplier,
            min_fare_multiplier=row.min_fare_multiplier,
            range_tiers=row.range_tiers or [],
            free_loading_minutes=row.free_loading_minutes,
            demurrage_multiplier=row.demurrage_multiplier,
            fuel_type=row.fuel_type,
            is_active=row.is_active,
        )


class SessionRateRuleStore:
    """Rate rule store that opens a short-lived session per call.

    Lets a long-lived RateTable read rules that admins change at runtime.
    """

    def __init__(self, session_factory: sessionmaker[Any]):
        self._session_factory = session_factory

    def get(self, vehicle_type: VehicleType) -> RateTableEntry | None:
        with self._session_factory() as session:
            return RateRuleRepository(session).get(vehicle_type)

    def save(self, entry: RateTableEntry) -> None:
        with self._session_factory() as session, transaction(session):
            RateRuleRepository(session).save(entry)

    def list_all(self) -> list[RateTableEntry]:
        with self._session_factory() as session:
            return RateRuleRepository(session).list_all()
