"""Driver-side models used by dispatch."""

from datetime import datetime
from typing import Protocol

from pydantic import BaseModel, Field

from ..vehicles import VehicleType


class DriverLocationRecord(BaseModel):
    driver_id: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    cell: str
    updated_at: datetime


class DriverProfile(BaseModel):
    driver_id: str
    vehicle_type: VehicleType
    is_online: bool = False
    verified: bool = False
    wallet_locked: bool = False
    rating: float = Field(default=5.0, ge=0, le=5)
    push_token: str | None = None
    location: DriverLocationRecord | None = None

    @property
    def is_dispatchable(self) -> bool:
        """Online, verified, not wallet-locked and with a known position."""
        return (
            self.is_online
            and self.verified
            and not self.wallet_locked
            and self.location is not None
        )


class Candidate(BaseModel):
    driver_id: str
    vehicle_type: VehicleType
    distance_km: float
    rating: float
    exact_match: bool
    push_token: str | None = None


class DriverLocator(Protocol):
    """Source of driver positions bucketed by H3 cell."""

    h3_resolution: int

    def drivers_in_cells(self, cells: set[str]) -> list[DriverProfile]: ...

    def update_location(self, driver_id: str, lat: float, lng: float) -> DriverLocationRecord: ...
