"""Great-circle distance calculations.

Haversine distances are used to rank dispatch candidates and to bound the
driver search radius. They are never used to price a trip: paid estimates
always come from the routing provider's road distance.
"""

from math import atan2, cos, radians, sin, sqrt

from ..core.exceptions import ValidationError

EARTH_RADIUS_M = 6_371_000  # Earth radius in meters


def haversine_distance_m(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in meters
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_M * c


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers."""
    return haversine_distance_m(lat1, lon1, lat2, lon2) / 1000.0


def validate_coordinates(lat: float, lng: float) -> None:
    """Raise ValidationError for coordinates outside the valid WGS84 range."""
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(
            f"Invalid latitude {lat}: must be between -90 and 90",
            details={"lat": lat, "lng": lng},
        )
    if not -180.0 <= lng <= 180.0:
        raise ValidationError(
            f"Invalid longitude {lng}: must be between -180 and 180",
            details={"lat": lat, "lng": lng},
        )
