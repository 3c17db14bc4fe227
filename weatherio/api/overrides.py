"""Override endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import AfterValidator, BaseModel, BeforeValidator, Field

from weatherio.api.deps import OverrideBackend, get_store
from weatherio.core.errors import ValidationError
from weatherio.models import OverrideKey, StrictOverrideValues, parse_calendar_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/override", tags=["override"])


def _coordinate_text(value: Any) -> Any:
    # Browsers may post coordinates as JSON numbers; keys compare as strings.
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return value


Coordinate = Annotated[str, BeforeValidator(_coordinate_text), Field(min_length=1)]
CalendarDate = Annotated[str, AfterValidator(parse_calendar_date)]


class OverrideKeyPayload(BaseModel):
    lat: Coordinate
    lon: Coordinate
    date: CalendarDate

    def key(self) -> OverrideKey:
        return OverrideKey(self.lat, self.lon, self.date)


class OverrideCreatePayload(OverrideKeyPayload):
    values: StrictOverrideValues


def _query_key(lat: Optional[str], lon: Optional[str], date: Optional[str]) -> OverrideKey:
    if not lat or not lon or not date:
        raise ValidationError("Missing lat, lon or date parameter")
    try:
        parse_calendar_date(date)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {exc}") from exc
    return OverrideKey(lat, lon, date)


@router.get("", summary="Latest active override for a key")
def get_override(
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    store: OverrideBackend = Depends(get_store),
) -> dict[str, Any]:
    """Return the active record, or an empty object when none is in effect."""

    record = store.get_latest_active(_query_key(lat, lon, date))
    return record.to_payload() if record else {}


@router.post("", status_code=201, summary="Create an override, superseding earlier ones")
def create_override(
    payload: OverrideCreatePayload,
    store: OverrideBackend = Depends(get_store),
) -> dict[str, Any]:
    record = store.create(payload.key(), payload.values.to_payload())
    return record.to_payload()


@router.delete("", summary="Deactivate the active override for a key")
def delete_override(
    payload: OverrideKeyPayload,
    store: OverrideBackend = Depends(get_store),
) -> dict[str, bool]:
    removed = store.delete(payload.key())
    return {"removed": removed is not None}


__all__ = ["router", "OverrideKeyPayload", "OverrideCreatePayload"]
