from .models import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    ActiveTrip,
    CancelledTrip,
    Cargo,
    CompletedTrip,
    Location,
    NegotiationEntry,
    OpenTrip,
    ServiceStatus,
    Trip,
    TripRequest,
    TripStatus,
    can_transition,
)

__all__ = [
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    "VALID_TRANSITIONS",
    "ActiveTrip",
    "CancelledTrip",
    "Cargo",
    "CompletedTrip",
    "Location",
    "NegotiationEntry",
    "OpenTrip",
    "ServiceStatus",
    "Trip",
    "TripRequest",
    "TripStatus",
    "can_transition",
]
