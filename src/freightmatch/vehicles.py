"""Vehicle fleet registry."""

from enum import Enum


class VehicleType(str, Enum):
    """Vehicle classes offered on the marketplace, smallest first."""

    BODA = "boda"  # motorcycle, small parcels up to ~20kg
    TOYO = "toyo"  # cargo tricycle, 300-500kg
    KIRIKUU = "kirikuu"  # mini truck, ~1 ton
    PICKUP = "pickup"  # 1-1.5 ton pickup
    CANTER = "canter"  # 3-4 ton box truck
    FUSO = "fuso"  # 10+ ton heavy truck

    @property
    def vehicle_class(self) -> int:
        """Capacity rank, 1 (smallest) to 6 (largest)."""
        return _VEHICLE_CLASS[self]


class FuelType(str, Enum):
    PETROL = "petrol"
    DIESEL = "diesel"


_VEHICLE_CLASS: dict[VehicleType, int] = {
    vehicle_type: rank for rank, vehicle_type in enumerate(VehicleType, start=1)
}

DEFAULT_FUEL_TYPE: dict[VehicleType, FuelType] = {
    VehicleType.BODA: FuelType.PETROL,
    VehicleType.TOYO: FuelType.PETROL,
    VehicleType.KIRIKUU: FuelType.DIESEL,
    VehicleType.PICKUP: FuelType.DIESEL,
    VehicleType.CANTER: FuelType.DIESEL,
    VehicleType.FUSO: FuelType.DIESEL,
}
