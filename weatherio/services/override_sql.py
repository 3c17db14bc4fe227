"""Override log stored in a relational table through SQLModel."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Mapping

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import func, select

from weatherio.core.errors import OverrideStoreError
from weatherio.db.session import get_session, init_db
from weatherio.models import OverrideKey, OverrideRecord, OverrideRow
from weatherio.services.override_store import utcnow

logger = logging.getLogger(__name__)


def _for_key(key: OverrideKey):
    return (OverrideRow.lat == key.lat, OverrideRow.lon == key.lon, OverrideRow.date == key.date)


class SqlOverrideStore:
    """Same contract as :class:`OverrideStore`, one row per log entry.

    Each mutation runs in a single transaction under the store lock, which
    keeps ``max(version) + 1`` race free on SQLite.
    """

    def __init__(
        self,
        engine: Engine,
        updated_by: str = "anonymous",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.engine = engine
        self.updated_by = updated_by
        self._clock = clock
        self._lock = threading.Lock()
        init_db(engine)

    def get_latest_active(self, key: OverrideKey) -> OverrideRecord | None:
        stmt = (
            select(OverrideRow)
            .where(*_for_key(key), OverrideRow.active == True)  # noqa: E712
            .order_by(OverrideRow.version.desc())
        )
        try:
            with get_session(self.engine) as session:
                row = session.exec(stmt).first()
                return row.to_record() if row else None
        except SQLAlchemyError as exc:
            raise OverrideStoreError(f"Override lookup failed: {exc}") from exc

    def history(self, key: OverrideKey) -> list[OverrideRecord]:
        stmt = select(OverrideRow).where(*_for_key(key)).order_by(OverrideRow.version)
        try:
            with get_session(self.engine) as session:
                return [row.to_record() for row in session.exec(stmt).all()]
        except SQLAlchemyError as exc:
            raise OverrideStoreError(f"Override history lookup failed: {exc}") from exc

    def create(self, key: OverrideKey, new_values: Mapping[str, Any]) -> OverrideRecord:
        with self._lock:
            try:
                with get_session(self.engine) as session:
                    current = session.exec(
                        select(func.max(OverrideRow.version)).where(*_for_key(key))
                    ).one()
                    version = (current or 0) + 1
                    for row in session.exec(select(OverrideRow).where(*_for_key(key))).all():
                        row.active = False
                        session.add(row)
                    row = OverrideRow(
                        lat=key.lat,
                        lon=key.lon,
                        date=key.date,
                        new_values=dict(new_values),
                        version=version,
                        active=True,
                        updated_at=self._clock(),
                        updated_by=self.updated_by,
                    )
                    session.add(row)
                    session.commit()
                    session.refresh(row)
                    record = row.to_record()
            except SQLAlchemyError as exc:
                raise OverrideStoreError(f"Override create failed: {exc}") from exc
        logger.info("Created override v%s for %s", record.version, key)
        return record

    def delete(self, key: OverrideKey) -> OverrideRecord | None:
        with self._lock:
            try:
                with get_session(self.engine) as session:
                    rows = session.exec(
                        select(OverrideRow)
                        .where(*_for_key(key), OverrideRow.active == True)  # noqa: E712
                        .order_by(OverrideRow.version.desc())
                    ).all()
                    if not rows:
                        return None
                    for row in rows:
                        row.active = False
                        session.add(row)
                    session.commit()
                    session.refresh(rows[0])
                    removed = rows[0].to_record()
            except SQLAlchemyError as exc:
                raise OverrideStoreError(f"Override delete failed: {exc}") from exc
        logger.info("Deactivated override v%s for %s", removed.version, key)
        return removed


__all__ = ["SqlOverrideStore"]
