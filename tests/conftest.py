"""Shared fixtures: fake clock, wttr.in payloads and a mocked forecast provider."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from weatherio.services.override_store import OverrideStore
from weatherio.services.weather import ForecastCache, ForecastProvider


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def hour(temp: str, humidity: str, wind: str, precip: str, code: str, desc: str) -> dict[str, Any]:
    return {
        "tempC": temp,
        "humidity": humidity,
        "windspeedKmph": wind,
        "precipMM": precip,
        "weatherCode": code,
        "weatherDesc": [{"value": desc}],
    }


def forecast_payload() -> dict[str, Any]:
    return {
        "weather": [
            {
                "date": "2024-01-01",
                "hourly": [
                    hour("20", "40", "10", "0.0", "113", "Sunny"),
                    hour("22", "50", "12", "0.5", "116", "Partly cloudy"),
                    hour("24", "60", "14", "1.0", "176", "Patchy rain possible "),
                    hour("26", "70", "16", "0.2", "122", "Overcast"),
                ],
            },
            {
                "date": "2024-01-02",
                "hourly": [
                    hour("10", "80", "5", "2.0", "338", "Heavy snow"),
                    hour("12", "90", "7", "3.0", "338", "Heavy snow"),
                ],
            },
        ]
    }


class UpstreamStub:
    """Records provider calls; ``respond`` decides the reply."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json=forecast_payload()
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.respond(request)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def provider(upstream: UpstreamStub) -> ForecastProvider:
    client = httpx.Client(transport=httpx.MockTransport(upstream))
    return ForecastProvider(url_template="https://wttr.in/{lat},{lon}?format=j1", client=client)


@pytest.fixture
def cache(provider: ForecastProvider, clock: FakeClock) -> ForecastCache:
    return ForecastCache(provider=provider, ttl=timedelta(minutes=15), clock=clock)


@pytest.fixture
def store(tmp_path, clock: FakeClock) -> OverrideStore:
    return OverrideStore(tmp_path / "overrides.json", clock=clock)
