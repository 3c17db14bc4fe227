"""Root API routers."""

from datetime import datetime, timezone

from fastapi import APIRouter

health_router = APIRouter(tags=["system"])


@health_router.get("/health", summary="Service health probe")
async def healthcheck() -> dict[str, str]:
    """Return a heartbeat with the server's current UTC time."""

    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}
