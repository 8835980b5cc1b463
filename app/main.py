"""FastAPI application routes, middleware, and metrics."""

import asyncio
import time
import uuid

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from pydantic import BaseModel

from app.bearing.bearing import classify, normalize_bearing
from app.errors import LocationServiceError
from app.geocoding_service.geocoding import lookup_city_center, reverse_geocode
from app.health.health_check import is_geocoding_api_available, is_redis_available
from app.location.provider import StaticLocationProvider
from app.location.session import DisplayStore, WhereAmISession
from app.logging_config import logger
from app.models.coordinate import Coordinate
from app.models.health import Dependencies, HealthResponse, ServiceStatus
from app.models.report import (
    CardinalLabel,
    DisplayState,
    LocationReport,
    WhereAmIRequest,
)
from app.redis_cache.cache import city_reference_cache
from app.report.builder import build
from structlog.contextvars import bind_contextvars, clear_contextvars

app = FastAPI()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request duration in seconds", ["path"]
)


class BearingClassification(BaseModel):
    """Bearing classification response payload."""

    bearing_deg: float
    cardinal_label: CardinalLabel


def build_report(fix: Coordinate) -> LocationReport:
    """Build a report using the live geocoders and the Redis city cache."""
    return build(fix, reverse_geocode, city_reference_cache(), lookup_city_center)


display_store = DisplayStore()
session = WhereAmISession(display_store, lambda fix: build_report(fix))


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Log request details, attach a request ID, and record metrics.

    Args:
        request: Incoming HTTP request.
        call_next: FastAPI handler for the next middleware/app.

    Returns:
        The response produced by the downstream handler.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    start = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response
    finally:
        duration_s = time.perf_counter() - start
        duration_ms = round(duration_s * 1000, 2)
        status_code = getattr(response, "status_code", 500)
        logger.info(
            "HTTP_REQUEST",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
        REQUEST_COUNT.labels(
            method=request.method, path=request.url.path, status_code=status_code
        ).inc()
        REQUEST_LATENCY.labels(path=request.url.path).observe(duration_s)
        clear_contextvars()


@app.exception_handler(LocationServiceError)
async def location_service_error_handler(request: Request, exc: LocationServiceError):
    """Convert unrecovered location service errors into 503 responses.

    Args:
        request: Incoming HTTP request.
        exc: Raised location service error.

    Returns:
        A JSON response with the error detail.
    """
    logger.error("LOCATION_SERVICE_ERROR", error=str(exc))
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/")
async def root():
    """Return a basic liveness response."""
    return {"message": "Hello World"}


@app.post("/where-am-i")
async def where_am_i(request: WhereAmIRequest) -> DisplayState:
    """Run one full request cycle for a device-reported fix.

    Args:
        request: Permission result and the fix reported by the device.

    Returns:
        The display state produced by the cycle.
    """
    return await session.run(
        request.permission_granted, StaticLocationProvider(request.fix)
    )


@app.get("/display")
async def display() -> DisplayState:
    """Return the current display state."""
    return display_store.state


@app.post("/report")
async def report(fix: Coordinate) -> LocationReport:
    """Build a location report for a fix without touching the display state.

    Args:
        fix: Coordinate to report on.

    Returns:
        The LocationReport for the fix.
    """
    return await asyncio.to_thread(build_report, fix)


@app.get("/bearing/classify")
async def classify_bearing(degrees: float = Query(allow_inf_nan=False)) -> BearingClassification:
    """Classify a raw bearing into a cardinal label."""
    return BearingClassification(
        bearing_deg=normalize_bearing(degrees), cardinal_label=classify(degrees)
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report API health and dependency availability.

    Returns:
        A HealthResponse containing dependency status.
    """
    geocoding_api_available = await is_geocoding_api_available()
    return HealthResponse(
        status="ok",
        dependencies=Dependencies(
            geocoding_api=ServiceStatus.available
            if geocoding_api_available
            else ServiceStatus.not_available,
            redis=is_redis_available(),
        ),
    )


@app.get("/metrics")
async def metrics():
    """Expose Prometheus metrics for scraping."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
