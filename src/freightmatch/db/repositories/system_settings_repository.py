"""Key/value system settings (kill switch, reference prices)."""

from typing import Any

from sqlalchemy.orm import Session

from ..schema import SystemSetting

SERVICE_ACTIVE = "service_active"
SURGE_ACTIVE = "surge_active"
PETROL_PRICE = "petrol_price"
DIESEL_PRICE = "diesel_price"


class SystemSettingsRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, key: str, default: Any = None) -> Any:
        row = self.session.get(SystemSetting, key)
        if row is None:
            return default
        return row.value

    def set(self, key: str, value: Any, updated_by: str | None = None) -> None:
        row = self.session.get(SystemSetting, key)
        if row is None:
            self.session.add(SystemSetting(key=key, value=value, updated_by=updated_by))
            return
        row.value = value
        row.updated_by = updated_by
