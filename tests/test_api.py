"""HTTP surface of the override service."""

from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from weatherio.core.errors import OverrideStoreError
from weatherio.main import create_app
from weatherio.models import OverrideKey

KEY_PARAMS = {"lat": "17.385", "lon": "78.4867", "date": "2024-01-01"}


@pytest.fixture
def client(store):
    """Create test client backed by a temporary JSON log."""
    return TestClient(create_app(store=store))


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert datetime.fromisoformat(data["time"]).tzinfo is not None


def test_get_without_override_returns_empty_object(client):
    response = client.get("/override", params=KEY_PARAMS)

    assert response.status_code == 200
    assert response.json() == {}


@pytest.mark.parametrize("missing", ["lat", "lon", "date"])
def test_get_with_missing_parameter_is_rejected(client, missing):
    params = {k: v for k, v in KEY_PARAMS.items() if k != missing}

    response = client.get("/override", params=params)

    assert response.status_code == 400
    assert "Missing" in response.json()["error"]


def test_get_with_empty_parameter_is_rejected(client):
    response = client.get("/override", params={**KEY_PARAMS, "lat": ""})

    assert response.status_code == 400


def test_create_then_read_then_delete(client, store):
    created = client.post("/override", json={**KEY_PARAMS, "values": {"tempC": 28.0}})

    assert created.status_code == 201
    body = created.json()
    assert body["version"] == 1
    assert body["active"] is True
    assert body["newValues"] == {"tempC": 28.0}
    assert body["updatedBy"] == "anonymous"

    fetched = client.get("/override", params=KEY_PARAMS).json()
    assert fetched["version"] == 1
    assert fetched["newValues"]["tempC"] == 28.0

    removed = client.request("DELETE", "/override", json=KEY_PARAMS)
    assert removed.status_code == 200
    assert removed.json() == {"removed": True}
    assert client.get("/override", params=KEY_PARAMS).json() == {}

    again = client.request("DELETE", "/override", json=KEY_PARAMS)
    assert again.json() == {"removed": False}
    assert [r.version for r in store.history(OverrideKey(**KEY_PARAMS))] == [1]


def test_second_create_supersedes_the_first(client):
    client.post("/override", json={**KEY_PARAMS, "values": {"tempC": 28.0}})
    second = client.post("/override", json={**KEY_PARAMS, "values": {"humidityPct": 80}}).json()

    assert second["version"] == 2
    assert client.get("/override", params=KEY_PARAMS).json()["newValues"] == {"humidityPct": 80}


def test_numeric_coordinates_are_stored_as_text(client, store):
    response = client.post(
        "/override", json={"lat": 17.385, "lon": 78.4867, "date": "2024-01-01", "values": {"tempC": 1.5}}
    )

    assert response.status_code == 201
    assert response.json()["lat"] == "17.385"
    assert store.get_latest_active(OverrideKey(**KEY_PARAMS)) is not None


@pytest.mark.parametrize(
    "body",
    [
        {"lat": "17.385", "lon": "78.4867", "date": "2024-01-01"},
        {"lon": "78.4867", "date": "2024-01-01", "values": {"tempC": 1.0}},
        {**KEY_PARAMS, "date": "2024-13-01", "values": {}},
        {**KEY_PARAMS, "date": "20240101", "values": {}},
        {**KEY_PARAMS, "lat": "", "values": {}},
        {**KEY_PARAMS, "values": {"humidityPct": 140}},
        {**KEY_PARAMS, "values": {"windKph": -3}},
        {**KEY_PARAMS, "values": {"source": "OVERRIDE"}},
        {**KEY_PARAMS, "values": "warm"},
    ],
)
def test_create_rejects_missing_or_malformed_fields(client, store, body):
    response = client.post("/override", json=body)

    assert response.status_code == 400
    assert response.json()["error"]
    assert not store.path.exists()


def test_create_rejects_invalid_json(client, store):
    response = client.post(
        "/override", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON body"
    assert not store.path.exists()


def test_delete_requires_full_key(client):
    response = client.request("DELETE", "/override", json={"lat": "17.385"})

    assert response.status_code == 400


def test_unsupported_method_is_rejected(client):
    response = client.put("/override", json={})

    assert response.status_code == 405


def test_cross_origin_preflight_is_allowed(client):
    response = client.options(
        "/override",
        headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "DELETE",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "DELETE" in response.headers["access-control-allow-methods"]


def test_cross_origin_simple_request_gets_cors_header(client):
    response = client.get("/override", params=KEY_PARAMS, headers={"Origin": "http://example.com"})

    assert response.headers["access-control-allow-origin"] == "*"


class BrokenStore:
    def get_latest_active(self, key):
        raise OverrideStoreError("disk on fire")

    def create(self, key, new_values):
        raise OverrideStoreError("disk on fire")

    def delete(self, key):
        raise OverrideStoreError("disk on fire")


def test_store_failures_become_json_errors():
    client = TestClient(create_app(store=BrokenStore()))

    response = client.post("/override", json={**KEY_PARAMS, "values": {}})

    assert response.status_code == 500
    assert response.json() == {"error": "disk on fire"}
