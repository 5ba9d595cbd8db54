from .compatibility import VehicleCompatibility
from .dispatch_matcher import DispatchMatcher
from .driver_geospatial_index import DriverGeospatialIndex
from .models import Candidate, DriverLocationRecord, DriverLocator, DriverProfile

__all__ = [
    "Candidate",
    "DispatchMatcher",
    "DriverGeospatialIndex",
    "DriverLocationRecord",
    "DriverLocator",
    "DriverProfile",
    "VehicleCompatibility",
]
