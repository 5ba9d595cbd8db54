"""Standardized exception hierarchy for the marketplace core."""

from typing import Any


class FreightMatchError(Exception):
    """Base exception for all marketplace errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(FreightMatchError):
    """Errors where refreshing state and trying again may succeed."""

    pass


class ConflictError(TransientError):
    """Optimistic-concurrency guard failed: another actor already moved the trip.

    Callers should reload the trip and re-present options to the user rather
    than replaying the same mutation.
    """

    pass


class RouteUnavailable(TransientError):
    """The routing provider could not produce a route; fare estimation aborts."""

    pass


class PermanentError(FreightMatchError):
    """Errors that will not succeed on retry."""

    pass


class ConfigError(PermanentError):
    """Missing, inactive or invalid rate table configuration."""

    pass


class NotAuthorized(PermanentError):
    """Caller is not a party allowed to perform the operation."""

    pass


class NoActiveOffer(PermanentError):
    """Accept was called while no negotiated price is on the table."""

    pass


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class StateError(PermanentError):
    """Operation is not valid in the trip's current status."""

    pass


class NoDriversAvailable(PermanentError):
    """Dispatch search radius exhausted without an eligible driver."""

    pass


class ServiceUnavailable(PermanentError):
    """The global kill switch is off; new trip requests are not accepted."""

    pass
