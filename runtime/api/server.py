"""
FastAPI application entry point for the chat relay.

Responsibilities:
- configure logging
- create the FastAPI app with an explicit Settings object
- install the CORS gate for the relay routes
- render every RelayError as {"error": "..."}
- include session and chat routes under /api

Run with:

    uvicorn runtime.api.server:app --reload
"""

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from configs.settings import Settings, settings as default_settings
from exceptions.exceptions import ConfigurationError, RelayError, UpstreamError
from ..agents.conversation_agent import SleepFn
from . import chat_routes, session_routes
from .cors import CORSGateMiddleware, PermissiveOriginPolicy, StrictOriginPolicy


logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        if isinstance(exc, ConfigurationError):
            logger.error("[CONFIG] %s (path=%s)", exc.message, request.url.path)
        elif isinstance(exc, UpstreamError):
            # Raw body was already logged by the client.
            logger.warning("[UPSTREAM] %s failed for path=%s", exc.operation, request.url.path)
        else:
            logger.warning("[API] HTTP %s for path=%s: %s", exc.status_code, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("[API] Validation error for path=%s: %s", request.url.path, exc.errors())
        return JSONResponse({"error": "Request validation failed"}, status_code=400)


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    sleep: Optional[SleepFn] = None,
) -> FastAPI:
    """Build the relay app.

    Parameters
    ----------
    settings:
        Configuration; defaults to the process-wide `configs.settings.settings`.
    http_client:
        Optional httpx.AsyncClient handed to every upstream client (tests use
        one backed by httpx.MockTransport). The caller owns its lifetime.
    sleep:
        Optional awaitable sleep used between run polls.
    """
    if settings is None:
        settings = default_settings

    app = FastAPI(title="Chat Relay")
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.sleep = sleep

    strict = StrictOriginPolicy(settings.allowed_origin_regex, settings.default_origin)
    app.add_middleware(
        CORSGateMiddleware,
        policies={
            f"{API_PREFIX}/session": strict,
            f"{API_PREFIX}/session/open": PermissiveOriginPolicy(),
            f"{API_PREFIX}/chat": strict,
        },
    )

    _register_exception_handlers(app)

    app.include_router(session_routes.router, prefix=API_PREFIX)
    app.include_router(chat_routes.router, prefix=API_PREFIX)

    @app.get("/healthz")
    def health_check():
        """
        Simple health check endpoint for uptime monitoring.
        """
        return {"status": "ok"}

    return app


configure_logging(default_settings.log_level)

app = create_app()
