# src/shelterroute/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance, installs CORS, and maps domain errors to
HTTP responses. Business logic lives in `shelterroute.api.routes` and
`shelterroute.routing.gateway`.

Error bodies are `{"error": "<message>"}`, except provider errors, which are passed
through with the provider's own status code and body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from shelterroute.config.settings import get_settings
from shelterroute.core.errors import RateLimitError, ShelterRouteError, TransientError, UpstreamError
from shelterroute.core.logging import configure_logging

from .routes import router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="ShelterRoute API", version="0.1.0")

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset", "Retry-After"],
)

app.include_router(router)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(UpstreamError)
def _handle_upstream(_: Request, exc: UpstreamError) -> Response:
    return Response(
        content=exc.body,
        status_code=exc.status_code,
        media_type=exc.content_type or "text/plain",
    )


@app.exception_handler(RateLimitError)
def _handle_rate_limit(_: Request, exc: RateLimitError) -> JSONResponse:
    return _error(
        exc.status_code,
        exc.message,
        headers={
            "Retry-After": str(exc.retry_after_seconds),
            "RateLimit-Limit": str(exc.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(exc.retry_after_seconds),
        },
    )


@app.exception_handler(TransientError)
def _handle_transient(_: Request, exc: TransientError) -> JSONResponse:
    return _error(exc.status_code, "Failed to fetch route")


@app.exception_handler(ShelterRouteError)
def _handle_domain_error(_: Request, exc: ShelterRouteError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
def _handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return _error(400, "; ".join(parts) or "Invalid request")


@app.exception_handler(StarletteHTTPException)
def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))
