"""Price negotiation between a customer and the engaged driver.

Offers alternate freely until either party accepts. Each write is a
compare-and-set on the status and version read at the start of the call, so
an offer that races an acceptance loses with ConflictError instead of
overwriting the agreed price.
"""

import logging
from enum import Enum
from typing import Any, Literal

from sqlalchemy.orm import sessionmaker

from ..core.exceptions import (
    ConflictError,
    NoActiveOffer,
    NotAuthorized,
    StateError,
    ValidationError,
)
from ..db.repositories import TripRepository
from ..db.transaction import transaction
from ..db.utils import utc_now
from ..fm_logging import log_trip_context
from ..notifications import NotificationDispatch
from ..trips.models import OPEN_STATUSES, NegotiationEntry, Trip, TripStatus

logger = logging.getLogger(__name__)

Party = Literal["customer", "driver"]


class NegotiationState(str, Enum):
    OPEN = "open"
    CUSTOMER_OFFERED = "customer_offered"
    DRIVER_COUNTERED = "driver_countered"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


def negotiation_state(trip: Trip) -> NegotiationState:
    if trip.status == TripStatus.CANCELLED:
        return NegotiationState.CANCELLED
    if trip.status not in OPEN_STATUSES:
        return NegotiationState.ACCEPTED
    if trip.negotiated_fare is None:
        return NegotiationState.OPEN
    last = trip.negotiation_history[-1] if trip.negotiation_history else None
    if last is not None and last.from_party == "driver":
        return NegotiationState.DRIVER_COUNTERED
    return NegotiationState.CUSTOMER_OFFERED


def _guard(trip: Trip) -> dict[str, Any]:
    return {"status": trip.status, "version": trip.version}


def _validate_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError(
            f"Offer amount must be a positive whole number of shillings, got {amount!r}"
        )


class NegotiationEngine:
    def __init__(
        self,
        session_factory: sessionmaker[Any],
        notifier: NotificationDispatch | None = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier

    def customer_offer(self, trip_id: str, caller_id: str, amount: int) -> Trip:
        """Customer proposes a price. Only the trip's customer may offer."""
        _validate_amount(amount)
        trip = self._record_offer(trip_id, caller_id, amount, "customer")
        if self._notifier is not None:
            self._notifier.notify_price_offer(trip, amount)
        return trip

    def driver_counteroffer(self, trip_id: str, caller_id: str, amount: int) -> Trip:
        """Engaged driver proposes a price. Other drivers are not authorized."""
        _validate_amount(amount)
        trip = self._record_offer(trip_id, caller_id, amount, "driver")
        if self._notifier is not None:
            self._notifier.notify_counteroffer(trip, amount)
        return trip

    def accept_offer(self, trip_id: str, caller_id: str) -> Trip:
        """Either party accepts the price on the table; the trip becomes accepted.

        Raises:
            NotAuthorized: caller is neither the customer nor the engaged driver
            ConflictError: the trip was already accepted or cancelled
            NoActiveOffer: no negotiated price is on the table
            StateError: no driver is engaged on the trip yet
        """
        with log_trip_context(trip_id), self._session_factory() as session, transaction(session):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            party = self._party(trip, caller_id)
            if trip.status not in OPEN_STATUSES:
                raise ConflictError(
                    "Offer is no longer available",
                    details={"trip_id": trip_id, "status": trip.status},
                )
            if trip.negotiated_fare is None:
                raise NoActiveOffer("No price offer to accept", details={"trip_id": trip_id})
            if trip.driver_id is None:
                raise StateError(
                    "Cannot accept an offer before a driver is engaged",
                    details={"trip_id": trip_id},
                )

            accepted = trips.compare_and_set(
                trip_id,
                {**_guard(trip), "driver_id": trip.driver_id},
                {
                    "status": TripStatus.ACCEPTED,
                    "final_fare": trip.negotiated_fare,
                    "accepted_at": utc_now(),
                },
            )
            logger.info("Offer of %d TZS accepted by %s", trip.negotiated_fare, party)

        if self._notifier is not None:
            self._notifier.notify_offer_accepted(accepted, party, trip.negotiated_fare)
        return accepted

    def reject_offer(self, trip_id: str, caller_id: str) -> Trip:
        """Clear the price on the table; the negotiation history is kept."""
        with log_trip_context(trip_id), self._session_factory() as session, transaction(session):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            party = self._party(trip, caller_id)
            self._require_open(trip)
            if trip.negotiated_fare is None:
                raise NoActiveOffer("No price offer to reject", details={"trip_id": trip_id})

            rejected = trips.compare_and_set(trip_id, _guard(trip), {"negotiated_fare": None})
            logger.info("Offer of %d TZS rejected by %s", trip.negotiated_fare, party)

        if self._notifier is not None:
            self._notifier.notify_offer_rejected(rejected, party)
        return rejected

    def history(self, trip_id: str) -> list[NegotiationEntry]:
        with self._session_factory() as session:
            return TripRepository(session).require(trip_id).negotiation_history

    def state(self, trip_id: str) -> NegotiationState:
        with self._session_factory() as session:
            return negotiation_state(TripRepository(session).require(trip_id))

    def _record_offer(self, trip_id: str, caller_id: str, amount: int, party: Party) -> Trip:
        with log_trip_context(trip_id), self._session_factory() as session, transaction(session):
            trips = TripRepository(session)
            trip = trips.require(trip_id)
            if self._party(trip, caller_id) != party:
                raise NotAuthorized(
                    f"Only the {party} of this trip can make this offer",
                    details={"trip_id": trip_id, "caller_id": caller_id},
                )
            self._require_open(trip)

            entry = NegotiationEntry(from_party=party, amount=amount, timestamp=utc_now())
            updated = trips.compare_and_set(
                trip_id,
                _guard(trip),
                {
                    "negotiated_fare": amount,
                    "negotiation_history": [*trip.negotiation_history, entry],
                },
            )
            logger.info("%s offered %d TZS", party.capitalize(), amount)
        return updated

    @staticmethod
    def _party(trip: Trip, caller_id: str) -> Party:
        if caller_id == trip.customer_id:
            return "customer"
        if trip.driver_id is not None and caller_id == trip.driver_id:
            return "driver"
        raise NotAuthorized(
            "Caller is not a party to this trip",
            details={"trip_id": trip.trip_id, "caller_id": caller_id},
        )

    @staticmethod
    def _require_open(trip: Trip) -> None:
        if trip.status not in OPEN_STATUSES:
            raise StateError(
                f"Negotiation is closed for a trip that is {trip.status}",
                details={"trip_id": trip.trip_id, "status": trip.status},
            )
