"""FastAPI application for the override service."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weatherio.api import api_router
from weatherio.api.deps import OverrideBackend, build_override_store
from weatherio.core.config import settings
from weatherio.core.errors import OverrideStoreError, ValidationError
from weatherio.core.logging_config import setup_logging


def _validation_response(exc: ValidationError) -> JSONResponse:
    body: dict = {"error": exc.message}
    if exc.details:
        body["detail"] = exc.details
    return JSONResponse(status_code=400, content=body)


def create_app(store: OverrideBackend | None = None) -> FastAPI:
    setup_logging(service_name="weatherio-api")
    logger = logging.getLogger(__name__)
    logger.info("Initializing %s API", settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.override_store = store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.exception_handler(ValidationError)
    async def _handle_validation(request: Request, exc: ValidationError) -> JSONResponse:
        return _validation_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if any(error.get("type") == "json_invalid" for error in errors):
            message = "Invalid JSON body"
        else:
            message = "Missing or malformed fields"
        details = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg"), "type": error.get("type")}
            for error in errors
        ]
        return _validation_response(ValidationError(message, details))

    @app.exception_handler(OverrideStoreError)
    async def _handle_store_error(request: Request, exc: OverrideStoreError) -> JSONResponse:
        logger.error("Override store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.on_event("startup")
    def _bootstrap_store() -> None:
        if app.state.override_store is None:
            app.state.override_store = build_override_store(settings)
            logger.info("Override backend ready: %s", settings.override_backend)

    return app


app = create_app()
