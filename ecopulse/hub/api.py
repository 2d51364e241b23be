"""FastAPI routes for the EcoPulse ingestion and query surface."""

import logging
import os
import time
from datetime import datetime

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, Security
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field

from ecopulse.engine.schema import Reading
from ecopulse.hub.core import ForecastHub
from ecopulse.hub.metrics import ENERGY_KWH, WATER_M3
from ecopulse.shared.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# --- Optional API key authentication ---
_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(key: str = Security(_api_key_header)):
    """Verify API key if ECOPULSE_API_KEY is configured, otherwise allow all."""
    expected = os.environ.get("ECOPULSE_API_KEY")
    if expected and key != expected:
        raise HTTPException(status_code=403, detail="Invalid API key")


# --- Pydantic request models ---
class ReadingIn(BaseModel):
    building_id: str = Field(min_length=1, max_length=64)
    timestamp: datetime
    energy: float = Field(default=0.0, ge=0)
    water: float = Field(default=0.0, ge=0)


def create_api(hub: ForecastHub) -> FastAPI:
    """Create FastAPI application with hub routes.

    Args:
        hub: ForecastHub instance

    Returns:
        FastAPI application
    """
    from ecopulse import __version__

    app = FastAPI(
        title="EcoPulse API",
        description="Consumption readings ingestion and forecast query API",
        version=__version__,
    )

    @app.middleware("http")
    async def request_timing_middleware(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        if elapsed > 1.0:
            logger.warning(f"{request.method} {request.url.path} took {elapsed:.2f}s")
        return response

    router = APIRouter(dependencies=[Depends(verify_api_key)])

    @app.get("/health")
    async def health():
        return {"status": "Healthy", **hub.status()}

    @app.get("/metrics")
    async def metrics():
        """Prometheus exposition of the hub's metrics sink."""
        return Response(content=hub.metrics.render(), media_type=hub.metrics.content_type)

    @router.get("/api/readings")
    async def list_readings(limit: int = Query(1000, ge=1, le=10000)):
        """Latest readings across all buildings, newest first."""
        try:
            readings = await hub.store.recent_readings(limit)
        except StoreUnavailableError:
            logger.exception("Error listing readings")
            raise HTTPException(status_code=503, detail="Store unavailable") from None
        return [r.to_dict() for r in readings]

    @router.post("/api/readings", status_code=202)
    async def post_reading(body: ReadingIn):
        """Store a reading and bump the building's ingested consumption gauges."""
        reading = Reading(body.building_id, body.timestamp, body.energy, body.water)
        try:
            await hub.store.insert_reading(reading)
        except StoreUnavailableError:
            logger.exception("Error storing reading")
            raise HTTPException(status_code=503, detail="Store unavailable") from None

        labels = {"building": body.building_id}
        hub.metrics.inc_gauge(ENERGY_KWH, labels, body.energy)
        hub.metrics.inc_gauge(WATER_M3, labels, body.water)
        return {"status": "accepted"}

    @router.get("/api/forecasts")
    async def list_forecasts(building: str, limit: int = Query(30, ge=1, le=365)):
        """Latest forecasts for one building, newest date first."""
        try:
            forecasts = await hub.store.fetch_forecasts(building, limit)
        except StoreUnavailableError:
            logger.exception("Error listing forecasts")
            raise HTTPException(status_code=503, detail="Store unavailable") from None
        return [f.to_dict() for f in forecasts]

    app.include_router(router)
    return app
