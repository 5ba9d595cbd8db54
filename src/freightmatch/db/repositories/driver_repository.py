"""Driver repository: availability flags, positions and earnings."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...core.exceptions import NotFoundError, StateError
from ...geo.cells import cell_for
from ...matching.models import DriverLocationRecord, DriverProfile
from ..schema import Driver
from ..utils import utc_now


class DriverRepository:
    """SQL-backed driver store; also serves as a DriverLocator via the cell index."""

    def __init__(self, session: Session, h3_resolution: int = 7):
        self.session = session
        self.h3_resolution = h3_resolution

    def register(self, profile: DriverProfile) -> None:
        row = Driver(
            driver_id=profile.driver_id,
            vehicle_type=profile.vehicle_type.value,
            is_online=profile.is_online,
            verified=profile.verified,
            wallet_locked=profile.wallet_locked,
            rating=profile.rating,
            push_token=profile.push_token,
        )
        if profile.location is not None:
            row.lat = profile.location.lat
            row.lng = profile.location.lng
            row.cell = cell_for(profile.location.lat, profile.location.lng, self.h3_resolution)
            row.location_updated_at = profile.location.updated_at
        self.session.add(row)

    def get(self, driver_id: str) -> DriverProfile | None:
        row = self.session.get(Driver, driver_id)
        if row is None:
            return None
        return self._to_domain(row)

    def require(self, driver_id: str) -> DriverProfile:
        return self._to_domain(self._get_row(driver_id))

    def update_location(self, driver_id: str, lat: float, lng: float) -> DriverLocationRecord:
        """Overwrite the driver's last known position and recompute its cell."""
        row = self._get_row(driver_id)
        row.lat = lat
        row.lng = lng
        row.cell = cell_for(lat, lng, self.h3_resolution)
        row.location_updated_at = utc_now()
        self.session.flush()
        return DriverLocationRecord(
            driver_id=driver_id,
            lat=lat,
            lng=lng,
            cell=row.cell,
            updated_at=row.location_updated_at,
        )

    def set_online(self, driver_id: str, online: bool) -> None:
        row = self._get_row(driver_id)
        if online and row.wallet_locked:
            raise StateError(
                "Wallet locked: settle outstanding commission before going online",
                details={"driver_id": driver_id, "reason": row.wallet_lock_reason},
            )
        row.is_online = online

    def set_verified(self, driver_id: str, verified: bool) -> None:
        self._get_row(driver_id).verified = verified

    def set_wallet_lock(self, driver_id: str, locked: bool, reason: str | None = None) -> None:
        """Lock forces the driver offline; unlocking leaves them offline."""
        row = self._get_row(driver_id)
        row.wallet_locked = locked
        row.wallet_lock_reason = reason if locked else None
        if locked:
            row.is_online = False

    def record_completed_trip(self, driver_id: str, earnings: int) -> None:
        row = self._get_row(driver_id)
        row.total_trips += 1
        row.total_earnings += earnings

    def totals(self, driver_id: str) -> tuple[int, int]:
        """(total_trips, total_earnings)."""
        row = self._get_row(driver_id)
        return row.total_trips, row.total_earnings

    def get_push_token(self, driver_id: str) -> str | None:
        row = self.session.get(Driver, driver_id)
        return row.push_token if row is not None else None

    def drivers_in_cells(self, cells: set[str]) -> list[DriverProfile]:
        if not cells:
            return []
        stmt = select(Driver).where(Driver.cell.in_(cells))
        return [self._to_domain(r) for r in self.session.execute(stmt).scalars().all()]

    def _get_row(self, driver_id: str) -> Driver:
        row = self.session.get(Driver, driver_id)
        if row is None:
            raise NotFoundError(f"Driver {driver_id} not found", details={"driver_id": driver_id})
        return row

    @staticmethod
    def _to_domain(row: Driver) -> DriverProfile:
        location = None
        if row.lat is not None and row.lng is not None and row.cell is not None:
            location = DriverLocationRecord(
                driver_id=row.driver_id,
                lat=row.lat,
                lng=row.lng,
                cell=row.cell,
                updated_at=row.location_updated_at or row.created_at,
            )
        return DriverProfile(
            driver_id=row.driver_id,
            vehicle_type=row.vehicle_type,
            is_online=row.is_online,
            verified=row.verified,
            wallet_locked=row.wallet_locked,
            rating=row.rating,
            push_token=row.push_token,
            location=location,
        )
