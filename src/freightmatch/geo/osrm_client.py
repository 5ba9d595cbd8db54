import logging

import httpx
import polyline
from pydantic import BaseModel

from ..core.exceptions import RouteUnavailable

logger = logging.getLogger(__name__)


class Route(BaseModel):
    distance_km: float
    duration_min: float
    polyline: str
    geometry: list[tuple[float, float]]


def decode_polyline(encoded: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode polyline string to list of (lat, lon) tuples."""
    coords = polyline.decode(encoded, precision)
    return [(lat, lon) for lat, lon in coords]


class OSRMClient:
    """Routing provider backed by an OSRM server.

    Every failure (server errors, timeouts, network errors, no route) is
    surfaced as RouteUnavailable; there is no local distance fallback because
    the result is used for paid estimates.
    """

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _route_url(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> str:
        origin_lat, origin_lon = origin
        dest_lat, dest_lon = destination
        return (
            f"{self.base_url}/route/v1/driving/"
            f"{origin_lon},{origin_lat};{dest_lon},{dest_lat}"
        )

    def _parse(self, response: httpx.Response) -> Route:
        if response.status_code >= 500:
            raise RouteUnavailable(
                f"OSRM server error: {response.status_code}",
                details={"status_code": response.status_code},
            )

        data = response.json()

        if data.get("code") != "Ok" or not data.get("routes"):
            raise RouteUnavailable(
                "No route found between coordinates",
                details={"osrm_code": data.get("code")},
            )

        route = data["routes"][0]
        return Route(
            distance_km=float(route["distance"]) / 1000.0,
            duration_min=float(route["duration"]) / 60.0,
            polyline=route["geometry"],
            geometry=decode_polyline(route["geometry"]),
        )

    async def get_route(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> Route:
        """Get route between two (lat, lon) coordinates using OSRM."""
        url = self._route_url(origin, destination)
        params = {"overview": "full", "geometries": "polyline"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise RouteUnavailable(f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise RouteUnavailable(f"Network error: {e}") from e

        return self._parse(response)

    def get_route_sync(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> Route:
        """Synchronous route fetching for the mutation path."""
        url = self._route_url(origin, destination)
        params = {"overview": "full", "geometries": "polyline"}

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning("OSRM request timed out after %ss", self.timeout)
            raise RouteUnavailable(f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("OSRM network error: %s", e)
            raise RouteUnavailable(f"Network error: {e}") from e

        return self._parse(response)
