"""SQLModel engine and session management for the SQL override backend."""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from weatherio.core.config import settings


@lru_cache(maxsize=None)
def get_engine(database_url: str | None = None) -> Engine:
    """Build (once per URL) an engine; in-memory SQLite shares one connection."""

    url = make_url(database_url or settings.database_url)
    kwargs: dict = {"echo": False}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Yield a session bound to ``engine`` and close it afterwards."""

    session = Session(engine)
    try:
        yield session
    finally:
        session.close()


__all__ = ["get_engine", "get_session", "init_db"]
