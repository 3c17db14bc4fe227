"""Versioned override log persisted as a single JSON file."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from weatherio.core.errors import OverrideStoreError
from weatherio.models import OverrideKey, OverrideRecord

logger = logging.getLogger(__name__)

_LOG_ADAPTER = TypeAdapter(list[OverrideRecord])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def index_by_key(records: Iterable[OverrideRecord]) -> dict[OverrideKey, list[OverrideRecord]]:
    """Group log entries per key, preserving log order inside each group."""

    grouped: dict[OverrideKey, list[OverrideRecord]] = defaultdict(list)
    for record in records:
        grouped[record.key].append(record)
    return grouped


def latest_active(records: Iterable[OverrideRecord]) -> OverrideRecord | None:
    """Highest-version active record; tolerates logs with several active entries."""

    active = [record for record in records if record.active]
    if not active:
        return None
    return max(active, key=lambda record: record.version)


class _CorruptLog(Exception):
    pass


class OverrideStore:
    """Append-only override log with supersession semantics.

    Every mutation reads the whole file, changes it in memory and writes it
    back through an atomic replace. Mutations are serialized by one lock for
    the whole file; readers never take it.
    """

    def __init__(
        self,
        path: Path | str,
        updated_by: str = "anonymous",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.path = Path(path)
        self.updated_by = updated_by
        self._clock = clock
        self._lock = threading.Lock()

    def get_latest_active(self, key: OverrideKey) -> OverrideRecord | None:
        return latest_active(self._index().get(key, []))

    def history(self, key: OverrideKey) -> list[OverrideRecord]:
        return sorted(self._index().get(key, []), key=lambda record: record.version)

    def create(self, key: OverrideKey, new_values: Mapping[str, Any]) -> OverrideRecord:
        with self._lock:
            log = self._read_for_update()
            existing = index_by_key(log).get(key, [])
            version = max((record.version for record in existing), default=0) + 1
            for record in existing:
                record.active = False
            created = OverrideRecord(
                lat=key.lat,
                lon=key.lon,
                date=key.date,
                new_values=dict(new_values),
                version=version,
                active=True,
                updated_at=self._clock(),
                updated_by=self.updated_by,
            )
            log.append(created)
            self._write(log)
        logger.info("Created override v%s for %s", version, key)
        return created

    def delete(self, key: OverrideKey) -> OverrideRecord | None:
        with self._lock:
            log = self._read_for_update()
            active = [record for record in index_by_key(log).get(key, []) if record.active]
            if not active:
                return None
            removed = latest_active(active)
            for record in active:
                record.active = False
            self._write(log)
        logger.info("Deactivated override v%s for %s", removed.version, key)
        return removed

    # -- persistence -----------------------------------------------------

    def _index(self) -> dict[OverrideKey, list[OverrideRecord]]:
        try:
            return index_by_key(self._parse(self.path.read_bytes()))
        except FileNotFoundError:
            return {}
        except (OSError, _CorruptLog) as exc:
            logger.warning("Override log %s unreadable, treating as empty: %s", self.path, exc)
            return {}

    def _read_for_update(self) -> list[OverrideRecord]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            quarantine = self._quarantine_path()
            logger.warning(
                "Override log %s unreadable (%s); moving it to %s and starting a fresh log",
                self.path,
                exc,
                quarantine,
            )
            try:
                os.replace(self.path, quarantine)
            except OSError as move_exc:
                raise OverrideStoreError(f"Unable to read override log {self.path}: {exc}") from move_exc
            return []
        try:
            return self._parse(raw)
        except _CorruptLog as exc:
            quarantine = self._quarantine_path()
            logger.warning(
                "Override log %s is invalid (%s); starting a fresh log, old content kept at %s",
                self.path,
                exc,
                quarantine,
            )
            try:
                shutil.copyfile(self.path, quarantine)
            except OSError:
                logger.warning("Could not copy corrupt override log aside", exc_info=True)
            return []

    def _quarantine_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    @staticmethod
    def _parse(raw: bytes) -> list[OverrideRecord]:
        if not raw.strip():
            return []
        try:
            return _LOG_ADAPTER.validate_json(raw)
        except PydanticValidationError as exc:
            raise _CorruptLog(str(exc)) from exc

    def _write(self, log: list[OverrideRecord]) -> None:
        payload = [record.to_payload() for record in log]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, indent=2)
                if self.path.exists():
                    shutil.copymode(self.path, tmp_name)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise OverrideStoreError(f"Unable to write override log {self.path}: {exc}") from exc


__all__ = ["OverrideStore", "index_by_key", "latest_active", "utcnow"]
