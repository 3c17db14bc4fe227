"""Service-layer utilities."""

from .forecast import DayOffset, ForecastSession, ForecastView, Location
from .merge import MergedForecast, MergeEngine, apply_override
from .override_sql import SqlOverrideStore
from .override_store import OverrideStore
from .overrides_client import OverrideServiceClient
from .weather import ForecastCache, ForecastProvider, summarize_day, weather_code_to_icon

__all__ = [
    "DayOffset",
    "ForecastCache",
    "ForecastProvider",
    "ForecastSession",
    "ForecastView",
    "Location",
    "MergeEngine",
    "MergedForecast",
    "OverrideServiceClient",
    "OverrideStore",
    "SqlOverrideStore",
    "apply_override",
    "summarize_day",
    "weather_code_to_icon",
]
