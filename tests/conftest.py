from typing import Any

import pytest

from freightmatch.core.exceptions import RouteUnavailable
from freightmatch.db import init_database
from freightmatch.geo.osrm_client import Route
from freightmatch.negotiation import NegotiationEngine
from freightmatch.notifications import NotificationDispatch, PushMessage
from freightmatch.pricing import FareCalculator, RateTable
from freightmatch.trips.lifecycle import TripLifecycle
from freightmatch.trips.models import ServiceStatus
from tests.factories import register_customer


class FakeRouter:
    """Routing provider returning a fixed road distance and duration."""

    def __init__(self, distance_km: float = 10.0, duration_min: float = 30.0):
        self.distance_km = distance_km
        self.duration_min = duration_min
        self.fail = False
        self.calls: list[tuple[tuple[float, float], tuple[float, float]]] = []

    def get_route_sync(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> Route:
        self.calls.append((origin, destination))
        if self.fail:
            raise RouteUnavailable("No route found between coordinates")
        return Route(
            distance_km=self.distance_km,
            duration_min=self.duration_min,
            polyline="_p~iF~ps|U_ulLnnqC_mqNvxq`@",
            geometry=[(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)],
        )


class RecordingSender:
    def __init__(self) -> None:
        self.messages: list[PushMessage] = []

    def send(self, messages: list[PushMessage]) -> int:
        self.messages.extend(messages)
        return len(messages)

    def titles_for(self, token: str) -> list[str]:
        return [m.title for m in self.messages if m.to == token]


class StaticTokens:
    def customer_token(self, customer_id: str) -> str | None:
        return f"ExpoPushToken[{customer_id}]"

    def driver_token(self, driver_id: str) -> str | None:
        return f"ExponentPushToken[{driver_id}]"


@pytest.fixture
def session_factory() -> Any:
    """In-memory SQLite database with all tables created."""
    return init_database("sqlite://")


@pytest.fixture
def rate_table() -> RateTable:
    table = RateTable()
    table.seed()
    return table


@pytest.fixture
def fare_calculator(rate_table: RateTable) -> FareCalculator:
    return FareCalculator(rate_table)


@pytest.fixture
def router() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def notifier(sender: RecordingSender) -> NotificationDispatch:
    return NotificationDispatch(sender, StaticTokens())


@pytest.fixture
def service_status() -> ServiceStatus:
    return ServiceStatus(accepting_requests=True, petrol_price=3200, diesel_price=3200)


@pytest.fixture
def lifecycle(
    session_factory: Any,
    router: FakeRouter,
    fare_calculator: FareCalculator,
    notifier: NotificationDispatch,
) -> TripLifecycle:
    register_customer(session_factory)
    return TripLifecycle(session_factory, router, fare_calculator, notifier=notifier)


@pytest.fixture
def negotiation(session_factory: Any, notifier: NotificationDispatch) -> NegotiationEngine:
    return NegotiationEngine(session_factory, notifier=notifier)
