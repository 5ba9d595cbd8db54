from ..vehicles import VehicleType


class VehicleCompatibility:
    """Which offered vehicles may serve a request for a given vehicle type.

    A vehicle always serves its own type. When larger vehicles are allowed,
    a vehicle up to ``max_upgrade_steps`` classes bigger also qualifies; a
    smaller vehicle never does.
    """

    def __init__(self, allow_larger: bool = True, max_upgrade_steps: int = 1):
        self.allow_larger = allow_larger
        self.max_upgrade_steps = max_upgrade_steps if allow_larger else 0

    def is_compatible(self, requested: VehicleType, offered: VehicleType) -> bool:
        steps = VehicleType(offered).vehicle_class - VehicleType(requested).vehicle_class
        return 0 <= steps <= self.max_upgrade_steps

    def compatible_types(self, requested: VehicleType) -> list[VehicleType]:
        """Serving types ordered exact match first, then by increasing size."""
        return sorted(
            (v for v in VehicleType if self.is_compatible(requested, v)),
            key=lambda v: v.vehicle_class,
        )
