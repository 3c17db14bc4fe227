"""Forecast session flows, locally and through the HTTP override client."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from weatherio.core.errors import OverrideStoreError
from weatherio.main import create_app
from weatherio.models import OverrideKey
from weatherio.services.forecast import DayOffset, ForecastSession, Location
from weatherio.services.overrides_client import OverrideServiceClient

HYDERABAD = Location(lat="17.385", lon="78.4867", tz="Asia/Kolkata")


def test_dates_follow_the_location_time_zone() -> None:
    late_utc = datetime(2023, 12, 31, 20, 0, tzinfo=timezone.utc)

    assert HYDERABAD.date_for(DayOffset.TODAY, now=late_utc) == "2024-01-01"
    assert HYDERABAD.date_for(DayOffset.DAYAFTER, now=late_utc) == "2024-01-03"
    assert Location("0", "0").date_for(DayOffset.TOMORROW, now=late_utc) == "2024-01-01"
    assert Location("0", "0", tz="Not/AZone").date_for(DayOffset.TODAY, now=late_utc) == "2023-12-31"


def test_load_save_and_remove_with_local_store(cache, store, upstream, clock) -> None:
    session = ForecastSession(location=HYDERABAD, cache=cache, overrides=store, clock=clock)

    view = session.load()
    assert view.visible
    assert view.date == "2024-01-01"
    assert view.provenance == "API"
    assert view.snapshot.temp_c == 23.0
    assert not view.can_remove

    view = session.save_override({"tempC": 28.0})
    assert view.provenance == "Override (v1)"
    assert view.snapshot.temp_c == 28.0
    assert view.snapshot.humidity_pct == 55
    assert view.can_remove
    assert len(upstream.calls) == 2

    view = session.remove_override()
    assert view.provenance == "API"
    assert view.snapshot.temp_c == 23.0
    assert not view.can_remove
    assert len(upstream.calls) == 3


def test_switching_day_changes_the_key(cache, store, clock) -> None:
    session = ForecastSession(location=HYDERABAD, cache=cache, overrides=store, clock=clock)
    session.load(DayOffset.TOMORROW)
    session.save_override({"conditionText": "Blizzard"})

    assert store.get_latest_active(OverrideKey("17.385", "78.4867", "2024-01-02")).version == 1
    assert session.load(DayOffset.TODAY).provenance == "API"
    assert session.load(DayOffset.TOMORROW).snapshot.condition_text == "Blizzard"


def test_upstream_failure_hides_the_card(cache, store, upstream, clock) -> None:
    upstream.respond = lambda request: httpx.Response(500)
    session = ForecastSession(location=HYDERABAD, cache=cache, overrides=store, clock=clock)

    view = session.load()

    assert not view.visible
    assert view.is_error
    assert view.snapshot is None
    assert view.status == "Failed to fetch weather data"


def test_invalid_values_are_not_saved(cache, store, clock) -> None:
    session = ForecastSession(location=HYDERABAD, cache=cache, overrides=store, clock=clock)
    session.load()

    view = session.save_override({"humidityPct": 150})

    assert view.is_error
    assert view.visible
    assert view.provenance == "API"
    assert not store.path.exists()


def test_session_through_http_override_service(cache, store, upstream, clock) -> None:
    client = OverrideServiceClient(client=TestClient(create_app(store=store)))
    session = ForecastSession(location=HYDERABAD, cache=cache, overrides=client, clock=clock)

    view = session.save_override({"tempC": 28.0, "conditionText": "Hot"})
    assert view.provenance == "Override (v1)"
    assert view.snapshot.condition_text == "Hot"

    record = client.get_latest_active(session.key_for())
    assert (record.version, record.active) == (1, True)
    assert record.new_values == {"tempC": 28.0, "conditionText": "Hot"}

    view = session.remove_override()
    assert view.provenance == "API"
    assert client.get_latest_active(session.key_for()) is None
    assert client.delete(session.key_for()) is False


def _failing_service(status: int) -> OverrideServiceClient:
    transport = httpx.MockTransport(lambda request: httpx.Response(status, json={"error": "nope"}))
    return OverrideServiceClient(client=httpx.Client(transport=transport, base_url="http://overrides"))


def test_client_reports_service_errors() -> None:
    client = _failing_service(500)
    key = OverrideKey("17.385", "78.4867", "2024-01-01")

    with pytest.raises(OverrideStoreError):
        client.get_latest_active(key)
    with pytest.raises(OverrideStoreError):
        client.create(key, {"tempC": 1.0})


def test_unreachable_override_service_degrades_to_api_data(cache, clock) -> None:
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = OverrideServiceClient(client=httpx.Client(transport=httpx.MockTransport(offline), base_url="http://x"))
    session = ForecastSession(location=HYDERABAD, cache=cache, overrides=client, clock=clock)

    view = session.load()
    assert view.visible
    assert view.provenance == "API"

    failed = session.save_override({"tempC": 30.0})
    assert failed.is_error
    assert failed.status == "Failed to save override"
    assert failed.snapshot.temp_c == 23.0
