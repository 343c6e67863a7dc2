"""ASGI application for Fridgelens."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Iterable, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from fridgelens import __version__, metrics
from fridgelens.config import Settings, get_settings
from fridgelens.db import EvaluationStore, build_store
from fridgelens.errors import FridgelensError
from fridgelens.llm import IngredientDetector, RecipeGenerator, build_detector, build_generator
from fridgelens.logging_utils import configure_logging as configure_app_logging
from fridgelens.server import api, ui

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("fridgelens.access")

REQUEST_ID_HEADER = "X-Request-ID"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def _describe_validation_errors(errors: Iterable[dict[str, Any]]) -> str:
    """Flatten FastAPI validation errors into `loc: msg` pairs."""

    described = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        described.append(f"{location}: {error.get('msg')}")
    return "; ".join(described)


def _log_context(request: Request) -> dict[str, Any]:
    request_id = getattr(request.state, "request_id", None)
    return {"extra": {"request_id": request_id}} if request_id else {}


def _record_request(method: str, path: str, status_code: int, started: float) -> float:
    elapsed = perf_counter() - started
    metrics.REQUEST_COUNT.labels(method=method, path=path, status=str(status_code)).inc()
    metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
    return elapsed * 1000


def _install_access_log(application: FastAPI) -> None:
    """Tag each request with an id, log one access line and record request metrics."""

    @application.middleware("http")
    async def access_log(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.request_id = request_id
        started = perf_counter()
        method, path = request.method, request.url.path
        try:
            response: Response = await call_next(request)
        except Exception:
            duration_ms = _record_request(method, path, 500, started)
            access_logger.exception(
                "HTTP %s %s status=500 duration_ms=%.2f",
                method,
                path,
                duration_ms,
                extra={"request_id": request_id},
            )
            raise

        duration_ms = _record_request(method, path, response.status_code, started)
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        access_logger.info(
            "HTTP %s %s status=%s duration_ms=%.2f",
            method,
            path,
            response.status_code,
            duration_ms,
            extra={"request_id": request_id},
        )
        return response


def _install_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(FridgelensError)
    async def render_fridgelens_error(request: Request, exc: FridgelensError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "%s %s failed status=%s error=%s details=%s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
            exc.details,
            **_log_context(request),
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @application.exception_handler(RequestValidationError)
    async def render_validation_error(request: Request, exc: RequestValidationError):
        details = _describe_validation_errors(exc.errors())
        logger.warning(
            "Invalid request on %s %s: %s",
            request.method,
            request.url.path,
            details,
            **_log_context(request),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request", "details": details},
        )

    @application.exception_handler(Exception)
    async def render_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "%s %s raised an unhandled %s",
            request.method,
            request.url.path,
            exc.__class__.__name__,
            exc_info=exc,
            **_log_context(request),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[EvaluationStore] = None,
    detector: Optional[IngredientDetector] = None,
    generator: Optional[RecipeGenerator] = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    The store and model backends are built once here and owned by the application; the store
    opens its connection lazily and is closed on shutdown.
    """

    settings = settings or get_settings()
    configure_app_logging(settings.log_level, settings.log_format, settings.secrets())

    application = FastAPI(title="Fridgelens Recipe Evaluator", version=__version__)
    application.state.settings = settings
    application.state.store = store or build_store(settings)
    application.state.detector = detector or build_detector(settings)
    application.state.generator = generator or build_generator(settings)

    @application.on_event("shutdown")
    def close_store() -> None:
        application.state.store.close()

    application.include_router(ui.router)
    application.include_router(api.router)
    # Older front-end builds call the same routes under /api.
    application.include_router(api.router, prefix="/api", include_in_schema=False)

    if settings.log_requests:
        _install_access_log(application)
    _install_error_handlers(application)

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    logger.debug(
        "Application created detector=%s generator=%s store=%s",
        settings.detector_provider,
        settings.generator_provider,
        settings.store_backend,
    )
    return application


app = create_app()

__all__ = ["app", "create_app"]
