import threading

from ..core.exceptions import NotFoundError
from ..db.utils import utc_now
from ..geo.cells import cell_for
from .models import DriverLocationRecord, DriverProfile


class DriverGeospatialIndex:
    """In-memory spatial index for driver locations using H3 hexagonal cells."""

    def __init__(self, h3_resolution: int = 7):
        self.h3_resolution = h3_resolution
        self._h3_cells: dict[str, set[str]] = {}
        self._drivers: dict[str, DriverProfile] = {}
        self._lock = threading.Lock()

    def add_driver(self, profile: DriverProfile, lat: float, lng: float) -> DriverLocationRecord:
        with self._lock:
            self._remove_locked(profile.driver_id)
            self._drivers[profile.driver_id] = profile.model_copy(update={"location": None})
        return self.update_location(profile.driver_id, lat, lng)

    def update_location(self, driver_id: str, lat: float, lng: float) -> DriverLocationRecord:
        with self._lock:
            profile = self._drivers.get(driver_id)
            if profile is None:
                raise NotFoundError(f"Driver {driver_id} not found")

            new_cell = cell_for(lat, lng, self.h3_resolution)
            old_cell = profile.location.cell if profile.location else None

            if old_cell != new_cell:
                if old_cell in self._h3_cells:
                    self._h3_cells[old_cell].discard(driver_id)
                    if not self._h3_cells[old_cell]:
                        del self._h3_cells[old_cell]
                self._h3_cells.setdefault(new_cell, set()).add(driver_id)

            record = DriverLocationRecord(
                driver_id=driver_id, lat=lat, lng=lng, cell=new_cell, updated_at=utc_now()
            )
            self._drivers[driver_id] = profile.model_copy(update={"location": record})
            return record

    def update_driver(self, driver_id: str, **changes: object) -> DriverProfile:
        """Replace availability fields (is_online, verified, wallet_locked, ...)."""
        with self._lock:
            profile = self._drivers.get(driver_id)
            if profile is None:
                raise NotFoundError(f"Driver {driver_id} not found")
            updated = profile.model_copy(update=changes)
            self._drivers[driver_id] = updated
            return updated

    def remove_driver(self, driver_id: str) -> None:
        with self._lock:
            self._remove_locked(driver_id)

    def _remove_locked(self, driver_id: str) -> None:
        profile = self._drivers.pop(driver_id, None)
        if profile is None or profile.location is None:
            return
        cell = profile.location.cell
        if cell in self._h3_cells:
            self._h3_cells[cell].discard(driver_id)
            if not self._h3_cells[cell]:
                del self._h3_cells[cell]

    def get(self, driver_id: str) -> DriverProfile | None:
        with self._lock:
            return self._drivers.get(driver_id)

    def drivers_in_cells(self, cells: set[str]) -> list[DriverProfile]:
        with self._lock:
            return [
                self._drivers[driver_id]
                for cell in cells & self._h3_cells.keys()
                for driver_id in self._h3_cells[cell]
            ]

    def clear(self) -> None:
        with self._lock:
            self._h3_cells.clear()
            self._drivers.clear()
