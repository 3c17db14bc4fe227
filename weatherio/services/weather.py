"""Remote forecast integration and the client-side snapshot cache."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import httpx

from weatherio.core.config import settings
from weatherio.core.errors import UpstreamFetchError
from weatherio.models import ConditionIcon, OverrideKey, SnapshotSource, WeatherSnapshot

logger = logging.getLogger(__name__)

_ICON_CODES: dict[ConditionIcon, frozenset[int]] = {
    ConditionIcon.CLEAR: frozenset({113}),
    ConditionIcon.PARTLY_CLOUDY: frozenset({116, 119, 122}),
    ConditionIcon.FOG: frozenset({143, 248, 260}),
    ConditionIcon.RAIN: frozenset(
        {176, 200, 263, 266, 281, 284, 293, 296, 299, 302, 305, 308, 311, 314, 353, 356, 359, 386, 389}
    ),
    ConditionIcon.SNOW: frozenset(
        {179, 227, 230, 317, 320, 323, 326, 329, 332, 335, 338, 350, 368, 371, 374, 377, 392, 395}
    ),
}


def weather_code_to_icon(code: int) -> ConditionIcon:
    for icon, codes in _ICON_CODES.items():
        if code in codes:
            return icon
    return ConditionIcon.CLOUDY


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round_tenth(value: float) -> float:
    """One decimal place, exact halves away from zero."""

    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _sample(entry: dict[str, Any], field: str) -> float:
    value = float(entry[field])
    if not math.isfinite(value):
        raise ValueError(f"{field} is not finite")
    return value


def summarize_day(payload: dict[str, Any], date: str) -> WeatherSnapshot:
    """Reduce one day of wttr.in hourly samples to a single snapshot.

    Temperature, humidity and wind are averaged, precipitation is summed and
    the condition comes from the middle sample of the day.
    """

    days = payload.get("weather") if isinstance(payload, dict) else None
    if not isinstance(days, list) or not days:
        raise UpstreamFetchError("Forecast response has no daily data")
    day = next((item for item in days if isinstance(item, dict) and item.get("date") == date), None)
    if day is None:
        logger.warning("Forecast response has no entry for %s; using the first day", date)
        day = days[0] if isinstance(days[0], dict) else {}
    hourly = day.get("hourly") or []
    if not isinstance(hourly, list) or not hourly:
        raise UpstreamFetchError("No hourly data available")

    try:
        count = len(hourly)
        temp = sum(_sample(entry, "tempC") for entry in hourly) / count
        humidity = sum(_sample(entry, "humidity") for entry in hourly) / count
        wind = sum(_sample(entry, "windspeedKmph") for entry in hourly) / count
        precip = sum(_sample(entry, "precipMM") for entry in hourly)
        condition = hourly[count // 2]
        descriptions = condition.get("weatherDesc") or []
        text = ""
        if descriptions and isinstance(descriptions[0], dict):
            text = str(descriptions[0].get("value") or "").strip()
        code = int(condition.get("weatherCode") or 0)
        return WeatherSnapshot(
            temp_c=_round_tenth(temp),
            humidity_pct=_round_half_up(humidity),
            wind_kph=_round_tenth(wind),
            precip_mm=_round_tenth(precip),
            condition_text=text,
            condition_icon=weather_code_to_icon(code).value,
            source=SnapshotSource.API,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise UpstreamFetchError(f"Malformed hourly forecast data: {exc}") from exc


class ForecastProvider:
    """Fetch daily snapshots from wttr.in over HTTP."""

    def __init__(
        self,
        url_template: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.url_template = url_template or settings.forecast_url_template
        self.timeout = timeout if timeout is not None else settings.forecast_timeout
        self._client = client

    def fetch(self, key: OverrideKey) -> WeatherSnapshot:
        url = self.url_template.format(lat=key.lat, lon=key.lon)
        try:
            logger.debug("Fetching forecast from: %s", url)
            if self._client is not None:
                response = self._client.get(url, timeout=self.timeout)
            else:
                response = httpx.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Forecast provider returned %s for %s", exc.response.status_code, url)
            raise UpstreamFetchError("Failed to fetch weather data") from exc
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch forecast (%s): %s", url, exc)
            raise UpstreamFetchError("Failed to fetch weather data") from exc
        except ValueError as exc:
            logger.warning("Forecast provider sent invalid JSON (%s)", url)
            raise UpstreamFetchError("Forecast response is not valid JSON") from exc
        return summarize_day(payload, key.date)


@dataclass
class CacheEntry:
    snapshot: WeatherSnapshot
    fetched_at: datetime


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _cache_id(key: OverrideKey) -> str:
    return f"{key.lat},{key.lon},{key.date}"


class ForecastCache:
    """TTL-bounded cache of API snapshots, one entry per (lat, lon, date).

    Entries hold provider data only; overrides are merged on top by the
    caller and never written here. With ``path`` set, entries are mirrored to
    a JSON file so a later process can reuse fresh data.
    """

    def __init__(
        self,
        provider: ForecastProvider | None = None,
        ttl: timedelta | None = None,
        path: Path | str | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.provider = provider or ForecastProvider()
        self.ttl = ttl if ttl is not None else timedelta(minutes=max(1, settings.forecast_ttl_minutes))
        self.path = Path(path) if path else None
        self._clock = clock
        self._entries: dict[str, CacheEntry] = self._load()

    def get(self, key: OverrideKey) -> WeatherSnapshot:
        """Return a fresh snapshot, fetching upstream when absent or stale."""

        entry = self._entries.get(_cache_id(key))
        now = self._clock()
        if entry and now - entry.fetched_at < self.ttl:
            return entry.snapshot
        snapshot = self.provider.fetch(key)
        self._entries[_cache_id(key)] = CacheEntry(snapshot=snapshot, fetched_at=now)
        self._save()
        return snapshot

    def invalidate(self, key: OverrideKey) -> None:
        if self._entries.pop(_cache_id(key), None) is not None:
            self._save()

    def _fresh(self, entries: dict[str, CacheEntry]) -> dict[str, CacheEntry]:
        now = self._clock()
        return {cache_id: entry for cache_id, entry in entries.items() if now - entry.fetched_at < self.ttl}

    def _load(self) -> dict[str, CacheEntry]:
        if not self.path:
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            entries = {
                cache_id: CacheEntry(
                    snapshot=WeatherSnapshot.model_validate(item["data"]),
                    fetched_at=_aware(datetime.fromisoformat(item["fetchedAt"])),
                )
                for cache_id, item in raw.items()
            }
            return self._fresh(entries)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("Ignoring unreadable forecast cache %s: %s", self.path, exc)
            return {}

    def _save(self) -> None:
        if not self.path:
            return
        self._entries = self._fresh(self._entries)
        payload = {
            cache_id: {"data": entry.snapshot.to_payload(), "fetchedAt": entry.fetched_at.isoformat()}
            for cache_id, entry in self._entries.items()
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not persist forecast cache %s: %s", self.path, exc)


__all__ = [
    "CacheEntry",
    "ForecastCache",
    "ForecastProvider",
    "summarize_day",
    "weather_code_to_icon",
]
