"""Combine the cached API snapshot with the latest active override."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from weatherio.core.errors import OverrideStoreError
from weatherio.models import OverrideKey, OverrideRecord, OverrideValues, SnapshotSource, WeatherSnapshot

logger = logging.getLogger(__name__)

API_PROVENANCE = "API"


class OverrideSource(Protocol):
    def get_latest_active(self, key: OverrideKey) -> OverrideRecord | None: ...


class SnapshotCache(Protocol):
    def get(self, key: OverrideKey) -> WeatherSnapshot: ...


@dataclass(frozen=True)
class MergedForecast:
    snapshot: WeatherSnapshot
    provenance: str
    baseline: WeatherSnapshot
    override: OverrideRecord | None = None


def override_provenance(record: OverrideRecord) -> str:
    return f"Override (v{record.version})"


def apply_override(baseline: WeatherSnapshot, record: OverrideRecord | None) -> MergedForecast:
    """Field-level merge of ``record.new_values`` over ``baseline``.

    An empty ``new_values`` still reports override provenance: the user
    confirmed the fetched values.
    """

    if record is None:
        return MergedForecast(snapshot=baseline, provenance=API_PROVENANCE, baseline=baseline)
    values = OverrideValues.model_validate(record.new_values)
    merged = WeatherSnapshot.model_validate(
        {**baseline.to_payload(), **values.to_payload(), "source": SnapshotSource.OVERRIDE.value}
    )
    return MergedForecast(
        snapshot=merged,
        provenance=override_provenance(record),
        baseline=baseline,
        override=record,
    )


class MergeEngine:
    """Produce the snapshot and provenance label shown for a key."""

    def __init__(self, cache: SnapshotCache, overrides: OverrideSource) -> None:
        self.cache = cache
        self.overrides = overrides

    def resolve(self, key: OverrideKey) -> MergedForecast:
        baseline = self.cache.get(key)
        try:
            record = self.overrides.get_latest_active(key)
        except OverrideStoreError as exc:
            logger.warning("Override lookup failed for %s, showing API data: %s", key, exc)
            record = None
        if record is None:
            return apply_override(baseline, None)
        try:
            return apply_override(baseline, record)
        except PydanticValidationError as exc:
            logger.warning("Ignoring unusable override v%s for %s: %s", record.version, key, exc)
            return apply_override(baseline, None)


__all__ = [
    "API_PROVENANCE",
    "MergeEngine",
    "MergedForecast",
    "OverrideSource",
    "apply_override",
    "override_provenance",
]
