"""Notification dispatch to customers and drivers.

Every notify_* call is fire-and-forget: it runs after the state change has
committed, on the executor when one is configured, and any failure (token
lookup, rendering, transport) is logged at WARNING and dropped.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Executor

from ..matching.models import Candidate
from ..trips.models import Trip
from .models import PushMessage
from .push_sender import PushSender
from .templates import NotificationTemplates, Template
from .tokens import PushTokenLookup

logger = logging.getLogger(__name__)

MessageBuilder = Callable[[], list[PushMessage]]


class NotificationDispatch:
    def __init__(
        self,
        sender: PushSender,
        tokens: PushTokenLookup,
        executor: Executor | None = None,
    ):
        self._sender = sender
        self._tokens = tokens
        self._executor = executor

    def notify_new_request(self, trip: Trip, candidates: list[Candidate]) -> None:
        """Broadcast a new request to every candidate driver with a push token."""

        def build() -> list[PushMessage]:
            template = NotificationTemplates.new_request(
                trip.distance_km, trip.fare.total, trip.request.vehicle_type.value
            )
            return [
                _message(c.push_token, template, trip)
                for c in candidates
                if c.push_token is not None
            ]

        self._submit("new_request", build)

    def notify_price_offer(self, trip: Trip, amount: int) -> None:
        """Customer offered a price; tell the engaged driver, if any."""
        if trip.driver_id is None:
            return
        driver_id = trip.driver_id
        self._submit(
            "price_offer",
            lambda: self._to_driver(driver_id, NotificationTemplates.price_offer(amount), trip),
        )

    def notify_counteroffer(self, trip: Trip, amount: int) -> None:
        self._submit(
            "counteroffer",
            lambda: self._to_customer(trip, NotificationTemplates.counteroffer(amount)),
        )

    def notify_offer_accepted(self, trip: Trip, accepted_by: str, amount: int) -> None:
        template = NotificationTemplates.offer_accepted(amount)
        self._submit("offer_accepted", lambda: self._to_counterparty(trip, accepted_by, template))

    def notify_offer_rejected(self, trip: Trip, rejected_by: str) -> None:
        template = NotificationTemplates.offer_rejected()
        self._submit("offer_rejected", lambda: self._to_counterparty(trip, rejected_by, template))

    def notify_ride_accepted(self, trip: Trip) -> None:
        self._submit(
            "ride_accepted", lambda: self._to_customer(trip, NotificationTemplates.ride_accepted())
        )

    def notify_status_changed(self, trip: Trip) -> None:
        template = NotificationTemplates.status_changed(trip.status)
        self._submit("status_changed", lambda: self._to_customer(trip, template))

    def notify_trip_completed(self, trip: Trip) -> None:
        """Fare receipt to the customer, earnings to the driver."""

        def build() -> list[PushMessage]:
            receipt = NotificationTemplates.trip_completed(trip.agreed_fare)
            messages = self._to_customer(trip, receipt)
            earnings = getattr(trip, "driver_earnings", None)
            if trip.driver_id is not None and earnings is not None:
                messages += self._to_driver(
                    trip.driver_id, NotificationTemplates.driver_trip_completed(earnings), trip
                )
            return messages

        self._submit("trip_completed", build)

    def notify_trip_cancelled(self, trip: Trip, cancelled_by: str, reason: str = "") -> None:
        template = NotificationTemplates.trip_cancelled(reason)
        self._submit("trip_cancelled", lambda: self._to_counterparty(trip, cancelled_by, template))

    def _to_customer(self, trip: Trip, template: Template) -> list[PushMessage]:
        token = self._tokens.customer_token(trip.customer_id)
        return [_message(token, template, trip)] if token else []

    def _to_driver(self, driver_id: str, template: Template, trip: Trip) -> list[PushMessage]:
        token = self._tokens.driver_token(driver_id)
        return [_message(token, template, trip)] if token else []

    def _to_counterparty(self, trip: Trip, actor: str, template: Template) -> list[PushMessage]:
        if actor == "customer":
            if trip.driver_id is None:
                return []
            return self._to_driver(trip.driver_id, template, trip)
        return self._to_customer(trip, template)

    def _submit(self, kind: str, build: MessageBuilder) -> None:
        if self._executor is None:
            self._deliver(kind, build)
            return
        try:
            self._executor.submit(self._deliver, kind, build)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning("Could not schedule %s notification: %s", kind, e)

    def _deliver(self, kind: str, build: MessageBuilder) -> None:
        try:
            messages = build()
            if messages:
                self._sender.send(messages)
        except Exception:
            logger.warning("Failed to deliver %s notification", kind, exc_info=True)


def _message(token: str, template: Template, trip: Trip) -> PushMessage:
    return PushMessage(
        to=token,
        title=template.title,
        body=template.body,
        priority=template.priority,
        data={"trip_id": trip.trip_id, "status": trip.status},
    )
