"""Trip repository with compare-and-set state transitions."""

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ...core.exceptions import ConflictError, NotFoundError
from ...trips.models import TERMINAL_STATUSES, Trip, TripStatus, trip_adapter
from ..schema import Trip as TripRow
from ..utils import utc_now

logger = logging.getLogger(__name__)

TERMINAL_STATES = {status.value for status in TERMINAL_STATUSES}

_JSON_FIELDS = ("request", "fare", "negotiation_history")


class TripRepository:
    """Repository for trip CRUD operations.

    Every mutation goes through compare_and_set: a single conditional UPDATE
    guarded by the values the caller read, so two actors racing on the same
    trip cannot both succeed.
    """

    def __init__(self, session: Session):
        self.session = session

    def create(self, trip: Trip) -> None:
        data = trip.model_dump(mode="json")
        row = TripRow(
            trip_id=trip.trip_id,
            customer_id=trip.customer_id,
            driver_id=trip.driver_id,
            status=trip.status,
            vehicle_type=trip.request.vehicle_type.value,
            request=data["request"],
            distance_km=trip.distance_km,
            duration_min=trip.duration_min,
            polyline=trip.polyline,
            fare=data["fare"],
            negotiated_fare=trip.negotiated_fare,
            final_fare=trip.final_fare,
            negotiation_history=data["negotiation_history"],
            version=trip.version,
            created_at=trip.created_at,
        )
        self.session.add(row)
        self.session.flush()

    def get(self, trip_id: str) -> Trip | None:
        row = self.session.get(TripRow, trip_id)
        if row is None:
            return None
        return self._to_domain(row)

    def require(self, trip_id: str) -> Trip:
        trip = self.get(trip_id)
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found", details={"trip_id": trip_id})
        return trip

    def compare_and_set(
        self,
        trip_id: str,
        expected: dict[str, Any],
        changes: dict[str, Any],
    ) -> Trip:
        """Apply changes only if every expected column still holds its value.

        Raises:
            ConflictError: another writer changed a guarded column first
        """
        stmt = update(TripRow).where(TripRow.trip_id == trip_id)
        for field, value in expected.items():
            column = getattr(TripRow, field)
            stmt = stmt.where(column.is_(None) if value is None else column == _column_value(value))

        values = {field: _column_value(value) for field, value in changes.items()}
        values["version"] = TripRow.version + 1
        values["updated_at"] = utc_now()
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        result = self.session.execute(stmt)
        if result.rowcount == 0:
            logger.info("Compare-and-set lost on trip %s (expected %s)", trip_id, expected)
            raise ConflictError(
                "Trip was modified by another request",
                details={"trip_id": trip_id, "expected": {k: str(v) for k, v in expected.items()}},
            )

        self.session.expire_all()
        return self.require(trip_id)

    def list_by_status(self, *statuses: TripStatus) -> list[Trip]:
        stmt = (
            select(TripRow)
            .where(TripRow.status.in_([TripStatus(s).value for s in statuses]))
            .order_by(TripRow.created_at.desc())
        )
        return [self._to_domain(t) for t in self.session.execute(stmt).scalars().all()]

    def list_in_flight(self) -> list[Trip]:
        """List trips in non-terminal states."""
        stmt = (
            select(TripRow)
            .where(TripRow.status.notin_(TERMINAL_STATES))
            .order_by(TripRow.created_at.desc())
        )
        return [self._to_domain(t) for t in self.session.execute(stmt).scalars().all()]

    def list_by_customer(self, customer_id: str) -> list[Trip]:
        stmt = (
            select(TripRow)
            .where(TripRow.customer_id == customer_id)
            .order_by(TripRow.created_at.desc())
        )
        return [self._to_domain(t) for t in self.session.execute(stmt).scalars().all()]

    def list_by_driver(self, driver_id: str) -> list[Trip]:
        stmt = (
            select(TripRow)
            .where(TripRow.driver_id == driver_id)
            .order_by(TripRow.created_at.desc())
        )
        return [self._to_domain(t) for t in self.session.execute(stmt).scalars().all()]

    @staticmethod
    def _to_domain(row: TripRow) -> Trip:
        data: dict[str, Any] = {
            column.key: getattr(row, column.key) for column in TripRow.__table__.columns
        }
        # Columns a variant does not declare (cancelled_by on an open trip, ...) are ignored
        data["cancellation_reason"] = data["cancellation_reason"] or ""
        return trip_adapter.validate_python(data)


def _column_value(value: Any) -> Any:
    if isinstance(value, TripStatus):
        return value.value
    if isinstance(value, list):
        return [v.model_dump(mode="json") if hasattr(v, "model_dump") else v for v in value]
    return value
