"""
HTTP entry point: FastAPI app exposing interception sessions.

``GET /api/intercept`` runs one session against a URL using the
environment configuration and returns the session summary as JSON.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator
from typing import Any

import dotenv
import fastapi
from fastapi import responses
from fastapi.middleware import cors

from trafficwarden import config as config_mod
from trafficwarden.browser import device_profiles
from trafficwarden.data import loader
from trafficwarden.pipeline import runner
from trafficwarden.utils import logger
from trafficwarden.utils.errors import (
    ConfigurationError,
    NavigationError,
    UnknownDeviceError,
)

dotenv.load_dotenv()

log = logger.create_logger("Server")


@contextlib.asynccontextmanager
async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None]:
    """Log server start on startup."""
    log.section("TrafficWarden Server Started")
    log.info("Rule presets available", {"presets": loader.available_presets()})
    yield


app = fastapi.FastAPI(title="TrafficWarden", lifespan=lifespan)

app.add_middleware(
    cors.CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ============================================================================
# Error mapping
# ============================================================================


@app.exception_handler(ConfigurationError)
async def _configuration_error(_request: fastapi.Request, exc: ConfigurationError) -> responses.JSONResponse:
    return responses.JSONResponse(status_code=400, content={"error": "configuration", "message": str(exc)})


@app.exception_handler(UnknownDeviceError)
async def _unknown_device(_request: fastapi.Request, exc: UnknownDeviceError) -> responses.JSONResponse:
    return responses.JSONResponse(
        status_code=404,
        content={"error": "unknown-device", "message": str(exc), "validDevices": exc.valid_names},
    )


@app.exception_handler(NavigationError)
async def _navigation_error(_request: fastapi.Request, exc: NavigationError) -> responses.JSONResponse:
    return responses.JSONResponse(status_code=502, content={"error": "navigation", "message": str(exc)})


# ============================================================================
# API Routes
# ============================================================================


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/devices")
async def list_devices() -> dict[str, list[str]]:
    """List the device profile catalog."""
    return {"devices": device_profiles.DeviceProfileProvider().names()}


@app.get("/api/intercept")
async def intercept(
    url: str = fastapi.Query(..., description="The URL to load"),
    device: str | None = fastapi.Query(None, description="Device profile to emulate"),
) -> dict[str, Any]:
    """Load *url* with interception enabled and return the traffic summary."""
    log.info("Incoming interception request", {"url": url, "device": device})
    overrides: dict[str, object] = {}
    if device:
        overrides["device_profile_name"] = device
    cfg = config_mod.load_config(**overrides)
    summary = await runner.run_session(url, cfg)
    return summary.model_dump(by_alias=True, mode="json")
