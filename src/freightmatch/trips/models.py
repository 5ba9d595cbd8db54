"""Trip aggregate and lifecycle state machine.

A trip is a tagged union on ``status``: fields that only exist once a driver
has committed (``driver_id`` on active trips, ``final_fare`` and
``driver_earnings`` on completed trips) are required on the variants that
guarantee them.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, PositiveInt, TypeAdapter, field_validator

from ..pricing.models import FareBreakdown
from ..vehicles import FuelType, VehicleType


class TripStatus(str, Enum):
    """Trip lifecycle states."""

    PENDING = "pending"
    SEARCHING = "searching"
    ACCEPTED = "accepted"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


OPEN_STATUSES = frozenset({TripStatus.PENDING, TripStatus.SEARCHING})
TERMINAL_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})

VALID_TRANSITIONS: dict[TripStatus, frozenset[TripStatus]] = {
    TripStatus.PENDING: frozenset(
        {TripStatus.SEARCHING, TripStatus.ACCEPTED, TripStatus.CANCELLED}
    ),
    TripStatus.SEARCHING: frozenset({TripStatus.ACCEPTED, TripStatus.CANCELLED}),
    TripStatus.ACCEPTED: frozenset({TripStatus.ARRIVED, TripStatus.CANCELLED}),
    TripStatus.ARRIVED: frozenset({TripStatus.IN_PROGRESS, TripStatus.CANCELLED}),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}


def can_transition(current: TripStatus | str, new: TripStatus | str) -> bool:
    return TripStatus(new) in VALID_TRANSITIONS[TripStatus(current)]


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Address too short")
        return v[:500]

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class Cargo(BaseModel):
    description: str
    photos: list[str] = Field(default_factory=list, max_length=5)
    declared_value: int = Field(default=0, ge=0)
    special_instructions: str | None = None

    @field_validator("description")
    @classmethod
    def trim_description(cls, v: str) -> str:
        return v.strip()[:500]

    @field_validator("special_instructions")
    @classmethod
    def trim_instructions(cls, v: str | None) -> str | None:
        return v.strip()[:300] if v is not None else None


class TripRequest(BaseModel):
    """A customer's intent to move cargo; immutable once a driver accepts."""

    customer_id: str
    pickup: Location
    dropoff: Location
    vehicle_type: VehicleType
    cargo: Cargo
    payment_method: Literal["cash", "mobile_money", "wallet"] = "cash"
    insurance_tier: str | None = None
    is_business: bool = False


class NegotiationEntry(BaseModel):
    from_party: Literal["customer", "driver"]
    amount: PositiveInt
    timestamp: datetime


class ServiceStatus(BaseModel):
    """Snapshot of the global service configuration, read once per trip request."""

    accepting_requests: bool = True
    surge_active: bool = False
    petrol_price: PositiveInt = 3200
    diesel_price: PositiveInt = 3100

    def reference_price_for(self, fuel_type: FuelType) -> int:
        if fuel_type == FuelType.PETROL:
            return self.petrol_price
        return self.diesel_price


class _TripBase(BaseModel):
    trip_id: str
    request: TripRequest
    distance_km: float = Field(ge=0)
    duration_min: float = Field(ge=0)
    polyline: str = ""
    fare: FareBreakdown
    negotiated_fare: int | None = None
    final_fare: int | None = None
    negotiation_history: list[NegotiationEntry] = Field(default_factory=list)
    version: int = 0
    created_at: datetime
    accepted_at: datetime | None = None
    arrived_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def customer_id(self) -> str:
        return self.request.customer_id

    @property
    def agreed_fare(self) -> int:
        """Fare used for billing: the negotiated final fare, else the estimate."""
        return self.final_fare if self.final_fare is not None else self.fare.total


class OpenTrip(_TripBase):
    """Pending or searching; driver_id is the engaged (negotiating) driver, if any."""

    status: Literal["pending", "searching"]
    driver_id: str | None = None


class ActiveTrip(_TripBase):
    status: Literal["accepted", "arrived", "in_progress"]
    driver_id: str


class CompletedTrip(_TripBase):
    status: Literal["completed"]
    driver_id: str
    final_fare: int
    driver_earnings: int


class CancelledTrip(_TripBase):
    status: Literal["cancelled"]
    driver_id: str | None = None
    cancelled_by: Literal["customer", "driver", "system"]
    cancellation_reason: str = ""


Trip = Annotated[
    OpenTrip | ActiveTrip | CompletedTrip | CancelledTrip,
    Field(discriminator="status"),
]

trip_adapter: TypeAdapter[OpenTrip | ActiveTrip | CompletedTrip | CancelledTrip] = TypeAdapter(
    Trip
)
