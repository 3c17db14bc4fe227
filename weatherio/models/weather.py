"""Forecast snapshot models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SnapshotSource(str, Enum):
    API = "API"
    OVERRIDE = "OVERRIDE"


class ConditionIcon(str, Enum):
    """Symbolic condition categories derived from provider weather codes."""

    CLEAR = "clear"
    PARTLY_CLOUDY = "partly-cloudy"
    FOG = "fog"
    RAIN = "rain"
    SNOW = "snow"
    CLOUDY = "cloudy"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]


_GLYPHS = {
    ConditionIcon.CLEAR: "☀️",
    ConditionIcon.PARTLY_CLOUDY: "⛅",
    ConditionIcon.FOG: "🌫️",
    ConditionIcon.RAIN: "🌧️",
    ConditionIcon.SNOW: "❄️",
    ConditionIcon.CLOUDY: "🌥️",
}


class WeatherSnapshot(BaseModel):
    """Daily forecast for one (location, date), fully populated.

    Serialized with camelCase keys (``tempC``, ``humidityPct`` ...), the form
    used on the wire and in the override log.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, allow_inf_nan=False)

    temp_c: float = Field(alias="tempC")
    humidity_pct: int = Field(alias="humidityPct", ge=0, le=100)
    wind_kph: float = Field(alias="windKph", ge=0)
    precip_mm: float = Field(alias="precipMm", ge=0)
    condition_text: str = Field(alias="conditionText")
    condition_icon: str = Field(alias="conditionIcon")
    source: SnapshotSource = SnapshotSource.API

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class OverrideValues(BaseModel):
    """Any subset of the snapshot fields supplied by a user.

    ``None`` means "not supplied"; those fields fall through to the API value.
    Unknown keys are ignored so records written by older clients stay readable.
    """

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False, extra="ignore")

    temp_c: Optional[float] = Field(default=None, alias="tempC")
    humidity_pct: Optional[int] = Field(default=None, alias="humidityPct", ge=0, le=100)
    wind_kph: Optional[float] = Field(default=None, alias="windKph", ge=0)
    precip_mm: Optional[float] = Field(default=None, alias="precipMm", ge=0)
    condition_text: Optional[str] = Field(default=None, alias="conditionText")
    condition_icon: Optional[str] = Field(default=None, alias="conditionIcon")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StrictOverrideValues(OverrideValues):
    """Request-side variant that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "ConditionIcon",
    "OverrideValues",
    "SnapshotSource",
    "StrictOverrideValues",
    "WeatherSnapshot",
]
