"""H3 cell helpers shared by the driver index and the driver repository."""

import h3


def cell_for(lat: float, lng: float, resolution: int) -> str:
    return h3.latlng_to_cell(lat, lng, resolution)


def rings_for_radius(radius_km: float, resolution: int) -> int:
    """Number of H3 rings around a center cell needed to cover radius_km."""
    edge_km = h3.average_hexagon_edge_length(resolution, unit="km")
    return max(1, int(radius_km / edge_km) + 1)


def cells_covering(lat: float, lng: float, radius_km: float, resolution: int) -> set[str]:
    """The cell containing (lat, lng) and its neighbour rings out to radius_km.

    Scanning the neighbour rings, not just the center cell, keeps drivers just
    across a cell boundary in the candidate set.
    """
    center = cell_for(lat, lng, resolution)
    return set(h3.grid_disk(center, rings_for_radius(radius_km, resolution)))
