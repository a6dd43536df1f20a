"""FastAPI application exposing the availability engine.

Run:
    uvicorn stay_engine.api.app:app --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stay_engine.api.routes import router
from stay_engine.config.settings import Settings
from stay_engine.errors import InvalidDateRange, MalformedUpstreamResponse, UpstreamError
from stay_engine.services.availability_client import AvailabilityClient
from stay_engine.services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

UPSTREAM_FAILURE_MESSAGE = "couldn't check availability, please try again"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = AvailabilityClient.from_settings(settings)
        app.state.service = AvailabilityService(client, settings)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Stay Availability Engine", lifespan=lifespan)
    app.include_router(router)

    @app.middleware("http")
    async def no_store(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    @app.exception_handler(InvalidDateRange)
    async def invalid_date_range(request: Request, exc: InvalidDateRange) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": str(exc)},
        )

    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        logger.error("Upstream failure on %s (status %s)", request.url.path, exc.status)
        return JSONResponse(
            status_code=502,
            content={"success": False, "message": UPSTREAM_FAILURE_MESSAGE},
        )

    @app.exception_handler(MalformedUpstreamResponse)
    async def malformed_upstream(request: Request, exc: MalformedUpstreamResponse) -> JSONResponse:
        logger.error("Malformed upstream response on %s", request.url.path)
        return JSONResponse(
            status_code=502,
            content={"success": False, "message": UPSTREAM_FAILURE_MESSAGE},
        )

    return app


app = create_app()
