"""JSON logging for the override service and the forecast CLI.

Both surfaces log through the root logger; each record carries a ``service``
field (``weatherio-api`` or ``weatherio-cli`` unless ``SERVICE_NAME`` is set)
so lines from the server and from CLI runs can be told apart in one stream.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger

_CONFIGURED = False

# Per-request chatter from the HTTP client libraries; forecast and override
# calls are already logged by weatherio.services.
_CHATTY_LOGGERS = ("httpx", "httpcore")


class _SurfaceFilter(logging.Filter):
    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service_name
        return True


def setup_logging(service_name: Optional[str] = None, level: Optional[str] = None) -> None:
    """Configure root logging once per process.

    ``level`` wins over ``LOG_LEVEL``; the CLI passes ``WARNING`` so store and
    cache chatter does not mix with the rendered forecast.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    service = os.getenv("SERVICE_NAME") or service_name or "weatherio"

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(service)s")
    )
    handler.addFilter(_SurfaceFilter(service))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(True)
    _CONFIGURED = True


__all__ = ["setup_logging"]
