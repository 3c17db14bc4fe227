"""Domain and database models."""

from .override import OverrideKey, OverrideRecord, OverrideRow, parse_calendar_date
from .weather import ConditionIcon, OverrideValues, SnapshotSource, StrictOverrideValues, WeatherSnapshot

__all__ = [
    "ConditionIcon",
    "OverrideKey",
    "OverrideRecord",
    "OverrideRow",
    "OverrideValues",
    "SnapshotSource",
    "StrictOverrideValues",
    "WeatherSnapshot",
    "parse_calendar_date",
]
