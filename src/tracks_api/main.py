from __future__ import annotations

import re
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from tracks_api.metrics import metrics
from tracks_core.errors import ConfigurationError, TrackNotFoundError
from tracks_core.logging import get_logger
from tracks_core.models import (
    ErrorResponse,
    LearningTracksResult,
    MetricsResponse,
    RenderContext,
)
from tracks_core.resolver import process_learning_tracks
from tracks_core.settings import resolve_site_runtime

logger = get_logger("tracks.api")
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:-]{0,127}$")


def _coerce_request_id(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if not _REQUEST_ID_RE.match(normalized):
        return None
    return normalized


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Fail fast on an unreadable site config or a bad language override.
    resolve_site_runtime()
    yield


app = FastAPI(title="Learning Tracks API", version="0.1.0", lifespan=lifespan)


class ResolveTracksRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    track_names: list[str] = Field(max_length=100)
    context: RenderContext


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    request_id = _coerce_request_id(request.headers.get("X-Request-ID")) or str(uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)
    response.headers["X-Request-ID"] = request_id
    metrics.record_http_status(response.status_code)
    logger.info(
        "http_request",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", response_model=MetricsResponse)
def get_metrics() -> MetricsResponse:
    snapshot = metrics.snapshot()
    return MetricsResponse(
        http_status_counts=snapshot["http_status_counts"],
        resolution_counts=snapshot["resolution_counts"],
        error_counts=snapshot["error_counts"],
    )


@app.get("/metrics/prometheus")
def get_metrics_prometheus() -> PlainTextResponse:
    return PlainTextResponse(content=metrics.prometheus_text())


@app.post("/v1/learning-tracks/resolve", response_model=LearningTracksResult)
async def resolve_learning_tracks(payload: ResolveTracksRequest) -> LearningTracksResult:
    result = await process_learning_tracks(payload.track_names, payload.context)
    metrics.record_resolution(
        featured=result.featured_track is not None,
        listed=len(result.learning_tracks),
    )
    return result


def _error_response(
    request: Request, *, status_code: int, error_code: str, message: str
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", str(uuid4()))
    payload = ErrorResponse(error_code=error_code, message=message, request_id=request_id)
    return JSONResponse(
        status_code=status_code,
        headers={"X-Request-ID": request_id},
        content=payload.model_dump(),
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):  # type: ignore[no-untyped-def]
    metrics.record_error("TRACKS_CONFIGURATION_ERROR")
    logger.warning(
        "learning_tracks_configuration_error",
        request_id=getattr(request.state, "request_id", None),
        error=str(exc),
    )
    return _error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        error_code="TRACKS_CONFIGURATION_ERROR",
        message=str(exc),
    )


@app.exception_handler(TrackNotFoundError)
async def track_not_found_handler(request: Request, exc: TrackNotFoundError):  # type: ignore[no-untyped-def]
    metrics.record_error("TRACKS_NOT_FOUND")
    return _error_response(
        request,
        status_code=status.HTTP_404_NOT_FOUND,
        error_code="TRACKS_NOT_FOUND",
        message=str(exc),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):  # type: ignore[no-untyped-def]
    error_count = len(exc.errors())
    metrics.record_error("HTTP_400")
    return _error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        error_code="HTTP_400",
        message=f"Invalid request payload ({error_count} validation error(s))",
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[no-untyped-def]
    request_id = getattr(request.state, "request_id", str(uuid4()))
    logger.exception(
        "unhandled_exception",
        request_id=request_id,
        path=request.url.path,
        error=str(exc),
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="HTTP_500",
        message="Internal server error",
    )
