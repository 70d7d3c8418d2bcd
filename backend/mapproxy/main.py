from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.mapproxy.core.config import Settings, get_settings
from backend.mapproxy.core.logging import (
    CorrelationIDMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
    get_logger,
)
from backend.mapproxy.core.cors import PreflightMiddleware
from backend.mapproxy.core.orchestrator import Aggregator
from backend.mapproxy.core.responses import ResponseAssembler, render
from backend.mapproxy.routers import debug_router, proxy_router
from backend.mapproxy.upstream.fetcher import build_upstream_client

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the proxy application.

    ``transport`` replaces the network layer of the upstream client, which lets
    tests point the proxy at an in-process mock upstream.
    """
    settings = settings or get_settings()
    upstream = settings.upstream
    aggregator = Aggregator(
        upstream,
        build_upstream_client(upstream.user_agent, timeout_ms=upstream.timeout_ms, transport=transport),
    )
    assembler = ResponseAssembler(
        no_store=settings.cache_control_no_store,
        not_found_format=settings.not_found_format,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle (startup and shutdown)."""
        configure_logging(log_level=settings.log_level, json_format=settings.log_json)
        logger.info(
            "proxy_started",
            player_data_url=upstream.player_data_url,
            map_data_url=upstream.map_data_url,
            timeout_ms=upstream.timeout_ms,
            forward_ids=upstream.forward_ids,
        )
        yield
        await aggregator.aclose()

    app = FastAPI(
        title="Lands Map Proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.aggregator = aggregator
    app.state.assembler = assembler

    app.add_middleware(PreflightMiddleware, assembler=assembler)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return render(assembler.route_not_found(request.url.path))
        return render(assembler.error(exc.status_code, str(exc.detail)))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            exception_type=type(exc).__name__,
            exc_info=exc,
        )
        return render(assembler.error(500, "Internal server error"))

    app.include_router(proxy_router)
    app.include_router(debug_router)
    return app


app = create_app()
