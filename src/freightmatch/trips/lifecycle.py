"""Trip lifecycle: request, dispatch, acceptance, progress and completion.

Every transition reads the trip, checks the caller and the state machine,
then writes with a compare-and-set on the status and version it read. Two
drivers accepting the same trip therefore race on a single conditional
UPDATE: exactly one wins, the other gets ConflictError.
"""

import logging
import math
import uuid
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy.orm import Session, sessionmaker

from ..core.exceptions import (
    ConflictError,
    NotAuthorized,
    ServiceUnavailable,
    StateError,
)
from ..db.repositories import DriverRepository, TripRepository
from ..db.transaction import transaction
from ..db.utils import utc_now
from ..fm_logging import log_trip_context
from ..geo.osrm_client import Route
from ..matching import Candidate, DispatchMatcher, DriverLocationRecord, DriverLocator
from ..notifications import NotificationDispatch
from ..pricing import FareCalculator, FareOptions
from ..settings import BillingSettings, MatchingSettings
from .models import (
    OPEN_STATUSES,
    OpenTrip,
    ServiceStatus,
    Trip,
    TripRequest,
    TripStatus,
    can_transition,
)

logger = logging.getLogger(__name__)


class RoutingProvider(Protocol):
    def get_route_sync(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> Route: ...


class TripLifecycle:
    def __init__(
        self,
        session_factory: sessionmaker[Any],
        router: RoutingProvider,
        fare_calculator: FareCalculator,
        matching_settings: MatchingSettings | None = None,
        billing_settings: BillingSettings | None = None,
        notifier: NotificationDispatch | None = None,
        locator: DriverLocator | None = None,
        apply_traffic_buffer: bool = False,
    ):
        self._session_factory = session_factory
        self._router = router
        self._fares = fare_calculator
        self._matching = matching_settings or MatchingSettings()
        self._billing = billing_settings or BillingSettings()
        self._notifier = notifier
        self._locator = locator
        self._apply_traffic_buffer = apply_traffic_buffer

    def request_trip(self, request: TripRequest, service_status: ServiceStatus) -> Trip:
        """Route, price and store a new trip as pending.

        Raises:
            ServiceUnavailable: the kill switch is off (checked before routing)
            RouteUnavailable: the routing provider could not produce a route
            ConfigError: no active pricing rule for the vehicle type
            ValidationError: the route is outside the priceable range
        """
        if not service_status.accepting_requests:
            logger.warning("Trip request rejected: service is paused")
            raise ServiceUnavailable("Service is temporarily unavailable")

        route = self._router.get_route_sync(request.pickup.as_tuple(), request.dropoff.as_tuple())

        entry = self._fares.rate_table.lookup(request.vehicle_type)
        reference_price = service_status.reference_price_for(entry.fuel_type)
        options = FareOptions(
            peak_hour=service_status.surge_active,
            apply_traffic_buffer=self._apply_traffic_buffer,
            is_business=request.is_business,
            insurance_tier=request.insurance_tier,
            declared_value=request.cargo.declared_value,
        )
        fare = self._fares.estimate(
            route.distance_km, route.duration_min, request.vehicle_type, reference_price, options
        )

        trip = OpenTrip(
            trip_id=str(uuid.uuid4()),
            request=request,
            status=TripStatus.PENDING.value,
            distance_km=route.distance_km,
            duration_min=route.duration_min,
            polyline=route.polyline,
            fare=fare,
            created_at=utc_now(),
        )
        with (
            log_trip_context(trip.trip_id),
            self._session_factory() as session,
            transaction(session),
        ):
            TripRepository(session).create(trip)
            logger.info(
                "Trip created: %s %.1fkm, fare %d TZS",
                request.vehicle_type.value,
                route.distance_km,
                fare.total,
            )
        return trip

    def dispatch(self, trip_id: str, radius_km: float | None = None) -> list[Candidate]:
        """Find candidate drivers and move the trip to searching.

        Candidates are searched before the state change, so NoDriversAvailable
        leaves the trip pending. Returns candidates nearest first.
        """
        with log_trip_context(trip_id), self._session_factory() as session, transaction(session):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            if trip.status not in OPEN_STATUSES:
                raise StateError(
                    f"Cannot dispatch a trip that is {trip.status}",
                    details={"trip_id": trip_id, "status": trip.status},
                )

            matcher = self._matcher(session)
            candidates = matcher.search(
                trip.request.pickup.as_tuple(), trip.request.vehicle_type, radius_km
            )

            if trip.status == TripStatus.PENDING:
                trip = trips.compare_and_set(
                    trip_id, _guard(trip), {"status": TripStatus.SEARCHING}
                )
            logger.info("Dispatching to %d candidate(s)", len(candidates))

        if self._notifier is not None:
            self._notifier.notify_new_request(trip, candidates)
        return candidates

    def engage_driver(self, trip_id: str, driver_id: str) -> Trip:
        """Record the driver who has opened the request and may negotiate on it."""
        with (
            log_trip_context(trip_id, driver_id=driver_id),
            self._session_factory() as session,
            transaction(session),
        ):
            self._require_eligible_driver(session, driver_id)
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            if trip.status not in OPEN_STATUSES:
                raise ConflictError(
                    "Ride is no longer available",
                    details={"trip_id": trip_id, "status": trip.status},
                )
            if trip.driver_id == driver_id:
                return trip
            if trip.driver_id is not None:
                raise ConflictError(
                    "Another driver is already negotiating this ride",
                    details={"trip_id": trip_id},
                )
            engaged = trips.compare_and_set(
                trip_id, {**_guard(trip), "driver_id": None}, {"driver_id": driver_id}
            )
            logger.info("Driver engaged")
        return engaged

    def accept(self, trip_id: str, driver_id: str) -> Trip:
        """Driver accepts the trip at the current price.

        Raises:
            NotAuthorized: driver is unverified or wallet-locked, or another
                driver is engaged on the trip
            ConflictError: the trip was taken or cancelled first
        """
        with (
            log_trip_context(trip_id, driver_id=driver_id),
            self._session_factory() as session,
            transaction(session),
        ):
            self._require_eligible_driver(session, driver_id)
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            if not can_transition(trip.status, TripStatus.ACCEPTED):
                raise ConflictError(
                    "Ride is no longer available",
                    details={"trip_id": trip_id, "status": trip.status},
                )
            if trip.driver_id is not None and trip.driver_id != driver_id:
                raise NotAuthorized(
                    "Another driver is negotiating this ride",
                    details={"trip_id": trip_id},
                )

            changes: dict[str, Any] = {
                "status": TripStatus.ACCEPTED,
                "driver_id": driver_id,
                "accepted_at": utc_now(),
            }
            if trip.negotiated_fare is not None:
                changes["final_fare"] = trip.negotiated_fare
            accepted = trips.compare_and_set(trip_id, _guard(trip), changes)
            logger.info("Trip accepted")

        if self._notifier is not None:
            self._notifier.notify_ride_accepted(accepted)
        return accepted

    def mark_arrived(self, trip_id: str, driver_id: str) -> Trip:
        return self._advance(trip_id, driver_id, TripStatus.ARRIVED, "arrived_at")

    def start_trip(self, trip_id: str, driver_id: str) -> Trip:
        return self._advance(trip_id, driver_id, TripStatus.IN_PROGRESS, "started_at")

    def complete(self, trip_id: str, driver_id: str) -> Trip:
        """Finish the trip, freeze the final fare and credit the driver.

        Earnings are final_fare less the platform commission (rounded up),
        credited in the same transaction as the status change.
        """
        with (
            log_trip_context(trip_id, driver_id=driver_id),
            self._session_factory() as session,
            transaction(session),
        ):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            self._require_assigned_driver(trip, driver_id)
            self._require_transition(trip, TripStatus.COMPLETED)

            final_fare = trip.agreed_fare
            commission = math.ceil(
                Decimal(final_fare) * Decimal(str(self._billing.commission_rate))
            )
            earnings = final_fare - commission

            completed = trips.compare_and_set(
                trip_id,
                _guard(trip),
                {
                    "status": TripStatus.COMPLETED,
                    "final_fare": final_fare,
                    "driver_earnings": earnings,
                    "completed_at": utc_now(),
                },
            )
            DriverRepository(session).record_completed_trip(driver_id, earnings)
            logger.info(
                "Trip completed: fare %d TZS, commission %d, earnings %d",
                final_fare,
                commission,
                earnings,
            )

        if self._notifier is not None:
            self._notifier.notify_trip_completed(completed)
        return completed

    def cancel(self, trip_id: str, caller_id: str, reason: str = "") -> Trip:
        """Either party cancels a trip that has not finished."""
        with log_trip_context(trip_id), self._session_factory() as session, transaction(session):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            if caller_id == trip.customer_id:
                cancelled_by = "customer"
            elif trip.driver_id is not None and caller_id == trip.driver_id:
                cancelled_by = "driver"
            else:
                raise NotAuthorized(
                    "Caller is not a party to this trip",
                    details={"trip_id": trip_id, "caller_id": caller_id},
                )
            self._require_transition(trip, TripStatus.CANCELLED)

            cancelled = trips.compare_and_set(
                trip_id,
                _guard(trip),
                {
                    "status": TripStatus.CANCELLED,
                    "cancelled_by": cancelled_by,
                    "cancellation_reason": reason[:500],
                    "cancelled_at": utc_now(),
                },
            )
            logger.info("Trip cancelled by %s from %s", cancelled_by, trip.status)

        if self._notifier is not None:
            self._notifier.notify_trip_cancelled(cancelled, cancelled_by, reason)
        return cancelled

    def update_driver_location(
        self, driver_id: str, lat: float, lng: float
    ) -> DriverLocationRecord:
        with self._session_factory() as session, transaction(session):
            return self._matcher(session).update_location(driver_id, lat, lng)

    def get_trip(self, trip_id: str) -> Trip:
        with self._session_factory() as session:
            return TripRepository(session).require(trip_id)

    def list_for_customer(self, customer_id: str) -> list[Trip]:
        with self._session_factory() as session:
            return TripRepository(session).list_by_customer(customer_id)

    def list_for_driver(self, driver_id: str) -> list[Trip]:
        with self._session_factory() as session:
            return TripRepository(session).list_by_driver(driver_id)

    def list_open_trips(self) -> list[Trip]:
        with self._session_factory() as session:
            return TripRepository(session).list_by_status(*OPEN_STATUSES)

    def list_active_trips(self) -> list[Trip]:
        """Trips that are neither completed nor cancelled, newest first."""
        with self._session_factory() as session:
            return TripRepository(session).list_in_flight()

    def _advance(self, trip_id: str, driver_id: str, new_status: TripStatus, stamp: str) -> Trip:
        with (
            log_trip_context(trip_id, driver_id=driver_id),
            self._session_factory() as session,
            transaction(session),
        ):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            self._require_assigned_driver(trip, driver_id)
            self._require_transition(trip, new_status)
            updated = trips.compare_and_set(
                trip_id, _guard(trip), {"status": new_status, stamp: utc_now()}
            )
            logger.info("Trip %s -> %s", trip.status, new_status.value)

        if self._notifier is not None:
            self._notifier.notify_status_changed(updated)
        return updated

    def _matcher(self, session: Session) -> DispatchMatcher:
        locator = self._locator or DriverRepository(session, self._matching.h3_resolution)
        return DispatchMatcher(locator, self._matching)

    @staticmethod
    def _require_eligible_driver(session: Session, driver_id: str) -> None:
        driver = DriverRepository(session).require(driver_id)
        if not driver.verified:
            raise NotAuthorized("Driver is not verified", details={"driver_id": driver_id})
        if driver.wallet_locked:
            raise NotAuthorized(
                "Wallet locked: settle outstanding commission to accept rides",
                details={"driver_id": driver_id},
            )

    @staticmethod
    def _require_assigned_driver(trip: Trip, driver_id: str) -> None:
        if trip.driver_id != driver_id:
            raise NotAuthorized(
                "Only the assigned driver can update this trip",
                details={"trip_id": trip.trip_id, "driver_id": driver_id},
            )

    @staticmethod
    def _require_transition(trip: Trip, new_status: TripStatus) -> None:
        if not can_transition(trip.status, new_status):
            raise StateError(
                f"Invalid transition: {trip.status} -> {new_status.value}",
                details={"trip_id": trip.trip_id, "status": trip.status},
            )


def _guard(trip: Trip) -> dict[str, Any]:
    return {"status": trip.status, "version": trip.version}

