"""Database engine initialization and connection management."""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .schema import Base


def init_database(url: str) -> sessionmaker[Any]:
    """Create the engine and tables for ``url`` and return a session factory.

    ``sqlite://`` (in-memory) shares one connection across threads so tests and
    notification workers see the same data.
    """
    engine_kwargs: dict[str, Any] = {"echo": False}
    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **engine_kwargs)
    Base.metadata.create_all(engine)

    return sessionmaker(bind=engine, expire_on_commit=False)
