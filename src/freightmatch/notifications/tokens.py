from typing import Any, Protocol

from sqlalchemy.orm import sessionmaker

from ..db.repositories import DriverRepository, UserProfileRepository


class PushTokenLookup(Protocol):
    def customer_token(self, customer_id: str) -> str | None: ...

    def driver_token(self, driver_id: str) -> str | None: ...


class RepositoryTokenLookup:
    """Reads push tokens in their own session, outside any trip transaction."""

    def __init__(self, session_factory: sessionmaker[Any]):
        self._session_factory = session_factory

    def customer_token(self, customer_id: str) -> str | None:
        with self._session_factory() as session:
            return UserProfileRepository(session).get_push_token(customer_id)

    def driver_token(self, driver_id: str) -> str | None:
        with self._session_factory() as session:
            return DriverRepository(session).get_push_token(driver_id)
