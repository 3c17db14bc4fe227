"""HTTP client for the override service."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from pydantic import ValidationError as PydanticValidationError

from weatherio.core.config import settings
from weatherio.core.errors import OverrideStoreError
from weatherio.models import OverrideKey, OverrideRecord

logger = logging.getLogger(__name__)


class OverrideServiceClient:
    """Thin wrapper around ``/override``; same read/write surface as the stores.

    ``client`` may be any ``httpx.Client`` (a FastAPI ``TestClient`` works);
    paths are then resolved against its base URL.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or settings.override_service_url).rstrip("/")
        self.timeout = timeout or settings.override_service_timeout
        self._client = client

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            logger.debug("Override request: %s %s params=%s json=%s", method, path, params, json)
            if self._client is not None:
                response = self._client.request(method, path, params=params, json=json, timeout=self.timeout)
            else:
                response = httpx.request(
                    method,
                    f"{self.base_url}{path}",
                    params=params,
                    json=json,
                    timeout=self.timeout,
                )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Override service error %s: %s", exc.response.status_code, exc.response.text[:200])
            raise OverrideStoreError(f"Override service returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Override service unreachable: %s", exc)
            raise OverrideStoreError(f"Failed to reach override service: {exc}") from exc
        except ValueError as exc:
            raise OverrideStoreError("Override service sent invalid JSON") from exc

    @staticmethod
    def _key_params(key: OverrideKey) -> dict[str, str]:
        return {"lat": key.lat, "lon": key.lon, "date": key.date}

    @staticmethod
    def _record(data: Any) -> OverrideRecord:
        try:
            return OverrideRecord.model_validate(data)
        except PydanticValidationError as exc:
            raise OverrideStoreError(f"Malformed override record: {exc}") from exc

    def get_latest_active(self, key: OverrideKey) -> OverrideRecord | None:
        data = self._request("GET", "/override", params=self._key_params(key))
        if not isinstance(data, dict) or "newValues" not in data:
            return None
        return self._record(data)

    def create(self, key: OverrideKey, new_values: Mapping[str, Any]) -> OverrideRecord:
        body = {**self._key_params(key), "values": dict(new_values)}
        return self._record(self._request("POST", "/override", json=body))

    def delete(self, key: OverrideKey) -> bool:
        data = self._request("DELETE", "/override", json=self._key_params(key))
        return bool(isinstance(data, dict) and data.get("removed"))


__all__ = ["OverrideServiceClient"]
