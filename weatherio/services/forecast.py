"""Per-user forecast session: location, selected day and the merged view."""

from __future__ import annotations

import logging
import zoneinfo
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from pydantic import ValidationError as PydanticValidationError

from weatherio.core.config import settings
from weatherio.core.errors import OverrideStoreError, UpstreamFetchError
from weatherio.models import OverrideKey, OverrideRecord, StrictOverrideValues, WeatherSnapshot
from weatherio.services.merge import MergedForecast, MergeEngine, OverrideSource, SnapshotCache

logger = logging.getLogger(__name__)


class DayOffset(str, Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    DAYAFTER = "dayafter"

    @property
    def days(self) -> int:
        return {"today": 0, "tomorrow": 1, "dayafter": 2}[self.value]


@dataclass
class Location:
    lat: str
    lon: str
    tz: str = "UTC"

    @classmethod
    def default(cls) -> "Location":
        return cls(lat=settings.default_lat, lon=settings.default_lon, tz=settings.default_tz)

    def date_for(self, day: DayOffset, now: datetime | None = None) -> str:
        """ISO calendar date ``day`` days ahead, in the location's time zone."""

        try:
            tz = zoneinfo.ZoneInfo(self.tz)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %s, using UTC", self.tz)
            tz = timezone.utc
        current = (now or datetime.now(timezone.utc)).astimezone(tz)
        return (current + timedelta(days=day.days)).date().isoformat()


class InvalidatingCache(SnapshotCache, Protocol):
    def invalidate(self, key: OverrideKey) -> None: ...


class OverrideWriter(OverrideSource, Protocol):
    def create(self, key: OverrideKey, new_values: Mapping[str, Any]) -> OverrideRecord: ...

    def delete(self, key: OverrideKey) -> Any: ...


@dataclass
class ForecastView:
    """What the UI renders for one load."""

    day: DayOffset
    date: str
    visible: bool
    status: str = ""
    snapshot: WeatherSnapshot | None = None
    provenance: str | None = None
    can_remove: bool = False
    is_error: bool = False


@dataclass
class ForecastSession:
    location: Location
    cache: InvalidatingCache
    overrides: OverrideWriter
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    day: DayOffset = DayOffset.TODAY
    current: MergedForecast | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.engine = MergeEngine(self.cache, self.overrides)

    def key_for(self, day: DayOffset | None = None) -> OverrideKey:
        date = self.location.date_for(day or self.day, now=self.clock())
        return OverrideKey(self.location.lat, self.location.lon, date)

    def load(self, day: DayOffset | None = None) -> ForecastView:
        if day is not None:
            self.day = day
        key = self.key_for()
        try:
            self.current = self.engine.resolve(key)
        except UpstreamFetchError as exc:
            logger.warning("Forecast unavailable for %s: %s", key, exc)
            self.current = None
            return ForecastView(day=self.day, date=key.date, visible=False, status=str(exc), is_error=True)
        override = self.current.override
        return ForecastView(
            day=self.day,
            date=key.date,
            visible=True,
            snapshot=self.current.snapshot,
            provenance=self.current.provenance,
            can_remove=bool(override and override.active),
        )

    def set_location(self, location: Location) -> ForecastView:
        self.location = location
        return self.load()

    def save_override(self, values: Mapping[str, Any]) -> ForecastView:
        key = self.key_for()
        try:
            payload = StrictOverrideValues.model_validate(dict(values)).to_payload()
            self.overrides.create(key, payload)
        except PydanticValidationError as exc:
            return self._failed(key, f"Invalid override values: {exc.error_count()} error(s)")
        except OverrideStoreError as exc:
            logger.warning("Saving override for %s failed: %s", key, exc)
            return self._failed(key, "Failed to save override")
        self.cache.invalidate(key)
        return self.load()

    def remove_override(self) -> ForecastView:
        key = self.key_for()
        try:
            self.overrides.delete(key)
        except OverrideStoreError as exc:
            logger.warning("Removing override for %s failed: %s", key, exc)
            return self._failed(key, "Failed to remove override")
        self.cache.invalidate(key)
        return self.load()

    def _failed(self, key: OverrideKey, message: str) -> ForecastView:
        # The card keeps showing whatever was last loaded.
        current = self.current
        return ForecastView(
            day=self.day,
            date=key.date,
            visible=current is not None,
            status=message,
            snapshot=current.snapshot if current else None,
            provenance=current.provenance if current else None,
            can_remove=bool(current and current.override and current.override.active),
            is_error=True,
        )


__all__ = ["DayOffset", "ForecastSession", "ForecastView", "Location", "OverrideWriter"]
