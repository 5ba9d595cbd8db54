"""Transaction utilities for explicit transaction boundaries.

Every state-changing operation runs its reads and its compare-and-set write
inside one ``transaction`` block, so a failed guard rolls back the whole
operation.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session


@contextmanager
def transaction(session: Session) -> Generator[Session]:
    """Commit on successful completion, roll back on any exception.

    Example:
        with session_factory() as session, transaction(session):
            trips = TripRepository(session)
            trips.compare_and_set(trip_id, {"status": "searching"}, {"status": "accepted"})
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
