"""API dependencies."""

from __future__ import annotations

from typing import Union

from fastapi import Request

from weatherio.core.config import Settings, settings
from weatherio.db.session import get_engine
from weatherio.services.override_sql import SqlOverrideStore
from weatherio.services.override_store import OverrideStore

OverrideBackend = Union[OverrideStore, SqlOverrideStore]


def build_override_store(config: Settings = settings) -> OverrideBackend:
    """Instantiate the configured override backend."""

    if config.override_backend == "sql":
        return SqlOverrideStore(get_engine(config.database_url), updated_by=config.override_updated_by)
    return OverrideStore(config.override_store_path, updated_by=config.override_updated_by)


def get_store(request: Request) -> OverrideBackend:
    return request.app.state.override_store
