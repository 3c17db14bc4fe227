"""Exception taxonomy shared by the store, the cache and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class WeatherioError(Exception):
    """Base class for every reported (non-fatal) failure."""


class UpstreamFetchError(WeatherioError):
    """The forecast provider failed: network error, non-2xx reply or unusable data."""


class OverrideStoreError(WeatherioError):
    """The override log could not be read or written."""


@dataclass(eq=False)
class ValidationError(WeatherioError):
    """A request is missing fields or carries malformed ones."""

    message: str
    details: list[dict[str, Any]] = field(default_factory=list)

    def __str__(self) -> str:  # pragma: no cover - human-friendly
        return self.message


__all__ = ["WeatherioError", "UpstreamFetchError", "OverrideStoreError", "ValidationError"]
