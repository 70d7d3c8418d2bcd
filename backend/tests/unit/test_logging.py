"""Unit tests for backend.mapproxy.core.logging."""

import logging
import uuid
from unittest.mock import MagicMock

import httpx
import pytest
import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from backend.mapproxy.core.logging import (
    CorrelationIDMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    def setup_method(self):
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def teardown_method(self):
        structlog.reset_defaults()

    def test_configure_logging_sets_root_level(self):
        configure_logging(log_level="DEBUG", json_format=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_with_console_format(self):
        configure_logging(log_level="INFO", json_format=False)

        logger = structlog.get_logger("test")
        assert hasattr(logger, "info")

    def test_configure_logging_invalid_level(self):
        configure_logging(log_level="INVALID", json_format=True)

        assert logging.getLogger().level == logging.WARNING

    def test_get_logger_returns_bindable_logger(self):
        logger = get_logger("backend.mapproxy.test").bind(source="map")

        assert hasattr(logger, "warning")


def _app(request_logger=None) -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return PlainTextResponse("pong")

    @app.get("/context")
    async def context():
        return JSONResponse(structlog.contextvars.get_contextvars())

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    app.add_middleware(RequestLoggingMiddleware, logger=request_logger)
    app.add_middleware(CorrelationIDMiddleware)
    return app


@pytest.mark.asyncio
async def test_correlation_middleware_echoes_incoming_id():
    transport = httpx.ASGITransport(app=_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/ping", headers={"X-Correlation-ID": "trace-123"})

    assert response.text == "pong"
    assert response.headers["x-correlation-id"] == "trace-123"


@pytest.mark.asyncio
async def test_correlation_middleware_generates_id_when_absent():
    transport = httpx.ASGITransport(app=_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/ping")

    uuid.UUID(response.headers["x-correlation-id"])


@pytest.mark.asyncio
async def test_correlation_id_is_bound_to_the_log_context():
    transport = httpx.ASGITransport(app=_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/context", headers={"X-Correlation-ID": "trace-456"})

    assert response.json() == {"correlation_id": "trace-456"}


@pytest.mark.asyncio
async def test_request_logging_reports_status_and_duration():
    request_logger = MagicMock()
    transport = httpx.ASGITransport(app=_app(request_logger))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/ping")

    request_logger.bind.assert_called_once_with(http_method="GET", path="/ping")
    bound = request_logger.bind.return_value
    assert [c.args[0] for c in bound.info.call_args_list] == ["request_started", "request_completed"]
    completed = bound.info.call_args_list[1].kwargs
    assert completed["status_code"] == 200
    assert completed["duration_ms"] >= 0


@pytest.mark.asyncio
async def test_request_logging_reports_500_when_the_app_fails():
    request_logger = MagicMock()
    transport = httpx.ASGITransport(app=_app(request_logger), raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/boom")

    completed = request_logger.bind.return_value.info.call_args_list[-1]
    assert completed.args == ("request_completed",)
    assert completed.kwargs["status_code"] == 500
