from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.user_knn.bootstrap import bootstrap_service
from src.user_knn.logging_utils import configure_logger
from src.user_knn.service.recommender_service import RecommenderService

from .error_codes import ErrorCode
from .errors import get_request_id, make_error
from .logging_setup import configure_app_logging
from .routes.health import router as health_router
from .routes.recommendations import router as recommendations_router


configure_app_logging()
logger = configure_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probes stay reachable while warming up and are not access-logged.
HEALTHCHECK_PATHS = {"/v1/health", "/v1/ready"}


async def _bootstrap_in_background(app: FastAPI) -> None:
    """
    Load the rating data outside of startup so the server accepts probes
    immediately. Marks app.state.is_ready=True once the service exists.
    """
    try:
        logger.info(
            "Background bootstrap started",
            extra={"event": "bootstrap.bg_start"},
        )

        # bootstrap_service() is synchronous and reads every rating
        service = await asyncio.to_thread(bootstrap_service)

        app.state.recommender_service = service
        app.state.is_ready = True

        logger.info(
            "Background bootstrap finished; application marked as ready",
            extra={"event": "bootstrap.bg_ready"},
        )
    except Exception:
        app.state.is_ready = False
        logger.exception(
            "Background bootstrap failed; application will remain not ready",
            extra={"event": "bootstrap.bg_failed"},
        )


def _map_http_status_to_error_code(status_code: int) -> ErrorCode:
    mapping: dict[int, ErrorCode] = {
        400: ErrorCode.BAD_REQUEST,
        404: ErrorCode.NOT_FOUND,
        503: ErrorCode.SERVICE_UNAVAILABLE,
    }
    return mapping.get(status_code, ErrorCode.HTTP_ERROR)


def _error_response(
    *,
    status_code: int,
    code: ErrorCode,
    message: str,
    request_id: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    payload = make_error(
        code=code.value,
        message=message,
        request_id=request_id,
        details=details,
    ).model_dump()

    return JSONResponse(
        status_code=status_code,
        content=payload,
        headers={REQUEST_ID_HEADER: request_id},
    )


def create_app(service: Optional[RecommenderService] = None) -> FastAPI:
    """
    Build the API application.

    With ``service`` given, the app is ready immediately and never touches
    configured data sources; otherwise the service is bootstrapped in the
    background after startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if service is not None:
            app.state.recommender_service = service
            app.state.is_ready = True
        else:
            app.state.is_ready = False
            app.state.recommender_service = None
            task = asyncio.create_task(_bootstrap_in_background(app))
        app.state.bootstrap_task = task

        yield

        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info(
                    "Background bootstrap task cancelled on shutdown",
                    extra={"event": "bootstrap.bg_cancelled"},
                )

    app = FastAPI(
        title="User-kNN Recommender API",
        version="0.1.0",
        description="User-based collaborative filtering recommendations",
        lifespan=lifespan,
    )
    app.state.is_ready = False
    app.state.recommender_service = None

    # Registered first so it runs inside the request-context middleware.
    @app.middleware("http")
    async def readiness_gate_middleware(request: Request, call_next):
        """Before the service is ready, only the probes are served."""
        if request.url.path in HEALTHCHECK_PATHS:
            return await call_next(request)

        if not bool(getattr(request.app.state, "is_ready", False)):
            return _error_response(
                status_code=503,
                code=ErrorCode.SERVICE_UNAVAILABLE,
                message="Service is warming up. Please retry shortly.",
                request_id=get_request_id(request),
            )

        return await call_next(request)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Attach a request id to every request and log its completion."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
            path = request.url.path

            if path not in HEALTHCHECK_PATHS:
                logger.info(
                    "Request completed",
                    extra={
                        "event": "request.completed",
                        "request_id": request_id,
                        "method": request.method,
                        "path": path,
                        "status_code": getattr(response, "status_code", None),
                        "duration_ms": duration_ms,
                    },
                )

            if response is not None:
                response.headers[REQUEST_ID_HEADER] = request_id

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = get_request_id(request)

        logger.warning(
            "Request validation failed",
            extra={
                "event": "request.validation_error",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "code": ErrorCode.VALIDATION_ERROR.value,
            },
        )

        return _error_response(
            status_code=422,
            code=ErrorCode.VALIDATION_ERROR,
            message="Request validation failed",
            request_id=request_id,
            details={"errors": jsonable_errors(exc)},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        request_id = get_request_id(request)
        code = _map_http_status_to_error_code(exc.status_code)

        if isinstance(exc.detail, str):
            message = exc.detail
            details = None
        elif isinstance(exc.detail, dict):
            message = "Request failed"
            details = exc.detail
        else:
            message = "Request failed"
            details = None

        logger.info(
            "HTTP exception raised",
            extra={
                "event": "request.http_exception",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": exc.status_code,
                "code": code.value,
            },
        )

        return _error_response(
            status_code=exc.status_code,
            code=code,
            message=message,
            request_id=request_id,
            details=details,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = get_request_id(request)

        logger.exception(
            "Unhandled exception",
            extra={
                "event": "error.unhandled_exception",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "code": ErrorCode.INTERNAL_ERROR.value,
            },
        )

        return _error_response(
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal Server Error",
            request_id=request_id,
        )

    app.include_router(health_router, prefix="/v1")
    app.include_router(recommendations_router, prefix="/v1")
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without non-serialisable context objects."""
    return [
        {key: value for key, value in err.items() if key in ("type", "loc", "msg", "input")}
        for err in exc.errors()
    ]


app = create_app()
