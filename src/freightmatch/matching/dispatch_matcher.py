"""Proximity-based driver candidate search with radius expansion."""

import logging

from ..core.exceptions import NoDriversAvailable, ValidationError
from ..geo.cells import cells_covering
from ..geo.distance import haversine_distance_km, validate_coordinates
from ..settings import MatchingSettings
from ..vehicles import VehicleType
from .compatibility import VehicleCompatibility
from .models import Candidate, DriverLocationRecord, DriverLocator

logger = logging.getLogger(__name__)


class DispatchMatcher:
    def __init__(
        self,
        locator: DriverLocator,
        settings: MatchingSettings | None = None,
        compatibility: VehicleCompatibility | None = None,
    ):
        self.locator = locator
        self.settings = settings or MatchingSettings()
        self.compatibility = compatibility or VehicleCompatibility(
            allow_larger=self.settings.allow_larger_vehicles,
            max_upgrade_steps=self.settings.max_vehicle_upgrade_steps,
        )

    def rank(
        self,
        pickup: tuple[float, float],
        vehicle_type: VehicleType,
        radius_km: float,
    ) -> list[Candidate]:
        """Eligible drivers within radius_km of pickup, nearest first.

        Exact vehicle matches are preferred: larger vehicles are only
        returned when no exact match is inside the radius.
        """
        lat, lng = pickup
        allowed = set(self.compatibility.compatible_types(vehicle_type))
        cells = cells_covering(lat, lng, radius_km, self.locator.h3_resolution)

        candidates: list[Candidate] = []
        for driver in self.locator.drivers_in_cells(cells):
            if not driver.is_dispatchable or driver.vehicle_type not in allowed:
                continue
            if driver.location is None:
                continue
            distance = haversine_distance_km(lat, lng, driver.location.lat, driver.location.lng)
            if distance > radius_km:
                continue
            candidates.append(
                Candidate(
                    driver_id=driver.driver_id,
                    vehicle_type=driver.vehicle_type,
                    distance_km=distance,
                    rating=driver.rating,
                    exact_match=driver.vehicle_type == vehicle_type,
                    push_token=driver.push_token,
                )
            )

        exact = [c for c in candidates if c.exact_match]
        pool = exact or candidates
        pool.sort(key=lambda c: (c.distance_km, -c.rating, c.driver_id))
        return pool

    def search(
        self,
        pickup: tuple[float, float],
        vehicle_type: VehicleType,
        radius_km: float | None = None,
    ) -> list[Candidate]:
        """rank() with radius expansion; raises NoDriversAvailable past max_radius_km."""
        validate_coordinates(*pickup)
        radius = radius_km if radius_km is not None else self.settings.initial_radius_km
        if radius <= 0:
            raise ValidationError(f"Search radius must be positive, got {radius}")
        max_radius = max(self.settings.max_radius_km, radius)

        while True:
            ranked = self.rank(pickup, vehicle_type, radius)
            if ranked:
                logger.info(
                    "Found %d %s candidate(s) within %.1fkm",
                    len(ranked),
                    VehicleType(vehicle_type).value,
                    radius,
                )
                return ranked
            if radius >= max_radius:
                break
            radius = min(radius * self.settings.radius_growth_factor, max_radius)
            logger.debug("No candidates, expanding search radius to %.1fkm", radius)

        logger.warning(
            "No %s drivers within %.1fkm of %s",
            VehicleType(vehicle_type).value,
            max_radius,
            pickup,
        )
        raise NoDriversAvailable(
            f"No drivers available within {max_radius}km",
            details={"vehicle_type": VehicleType(vehicle_type).value, "radius_km": max_radius},
        )

    def find_candidates(
        self,
        pickup: tuple[float, float],
        vehicle_type: VehicleType,
        radius_km: float | None = None,
    ) -> list[str]:
        """Driver ids ordered by non-decreasing distance from pickup."""
        return [c.driver_id for c in self.search(pickup, vehicle_type, radius_km)]

    def update_location(self, driver_id: str, lat: float, lng: float) -> DriverLocationRecord:
        validate_coordinates(lat, lng)
        return self.locator.update_location(driver_id, lat, lng)
