"""
Structured logging configuration for the Lands map proxy.

Sets up structlog on top of the standard library logger. A correlation ID is
bound to the structlog context for each inbound request, so the upstream
fetches and marker warnings logged while serving it carry the same ID.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import Any, Dict, Optional

import structlog

CORRELATION_HEADER = "X-Correlation-ID"


def configure_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level name; unknown names fall back to WARNING
        json_format: JSON lines when True, coloured console output otherwise
    """
    numeric_level = getattr(logging, log_level.upper(), logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if json_format:
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def _header(scope: Dict[str, Any], wanted: str) -> Optional[str]:
    wanted = wanted.lower().encode("latin-1")
    for name, value in scope.get("headers", []):
        if name.lower() == wanted:
            return value.decode("latin-1")
    return None


class CorrelationIDMiddleware:
    """
    ASGI middleware binding a correlation ID to the structlog context.

    The ID is taken from the incoming header when present, generated otherwise,
    and echoed back on the response.
    """

    def __init__(self, app: Any, header_name: str = CORRELATION_HEADER):
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = _header(scope, self.header_name) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        async def send_with_correlation_id(message: Dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((self.header_name.encode("latin-1"), correlation_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_correlation_id)


class RequestLoggingMiddleware:
    """ASGI middleware logging one start and one completion event per HTTP request."""

    def __init__(self, app: Any, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self.app = app
        self.logger = logger or get_logger("backend.mapproxy.requests")

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        log = self.logger.bind(http_method=scope.get("method", ""), path=scope.get("path", ""))
        started = time.perf_counter()
        # stays 500 when the app dies before starting a response
        status = {"code": 500}

        async def send_with_status(message: Dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        log.info("request_started")
        try:
            await self.app(scope, receive, send_with_status)
        finally:
            log.info(
                "request_completed",
                status_code=status["code"],
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
