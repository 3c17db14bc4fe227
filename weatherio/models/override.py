"""Override log models."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import JSON, Column
from sqlmodel import Field as SQLField
from sqlmodel import SQLModel


class OverrideKey(NamedTuple):
    """Identity of one forecast slot; compared by exact string match."""

    lat: str
    lon: str
    date: str


class OverrideRecord(BaseModel):
    """One entry of the override log.

    Persisted flat, with camelCase keys:
    ``{lat, lon, date, newValues, updatedAt, updatedBy, version, active}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    lat: str
    lon: str
    date: str
    new_values: dict[str, Any] = Field(default_factory=dict, alias="newValues")
    version: int = Field(ge=1)
    active: bool = True
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="updatedAt")
    updated_by: str = Field(default="anonymous", alias="updatedBy")

    @property
    def key(self) -> OverrideKey:
        return OverrideKey(self.lat, self.lon, self.date)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class OverrideRow(SQLModel, table=True):
    """Table-backed override record used by the SQL store."""

    __tablename__ = "override_record"

    id: Optional[int] = SQLField(default=None, primary_key=True)
    lat: str = SQLField(max_length=64, index=True)
    lon: str = SQLField(max_length=64, index=True)
    date: str = SQLField(max_length=10, index=True)
    new_values: dict = SQLField(default_factory=dict, sa_column=Column(JSON, nullable=False))
    version: int = SQLField(nullable=False)
    active: bool = SQLField(default=True, index=True)
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_by: str = SQLField(default="anonymous", max_length=128)

    def to_record(self) -> OverrideRecord:
        updated_at = self.updated_at
        if updated_at.tzinfo is None:
            # SQLite drops the offset; rows are always written in UTC.
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return OverrideRecord(
            lat=self.lat,
            lon=self.lon,
            date=self.date,
            new_values=dict(self.new_values or {}),
            version=self.version,
            active=self.active,
            updated_at=updated_at,
            updated_by=self.updated_by,
        )


def parse_calendar_date(value: str) -> str:
    """Return ``value`` unchanged if it is a ``YYYY-MM-DD`` calendar date."""

    parsed = date_type.fromisoformat(value)
    if parsed.isoformat() != value:
        raise ValueError(f"expected YYYY-MM-DD, got {value!r}")
    return value


__all__ = ["OverrideKey", "OverrideRecord", "OverrideRow", "parse_calendar_date"]
