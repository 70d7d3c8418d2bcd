"""Async HTTP fetching of upstream JSON documents."""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx
from structlog.stdlib import BoundLogger

from backend.mapproxy.core.logging import get_logger
from backend.mapproxy.models import FetchResult, Failed, HttpStatus, MalformedBody, Ok, Unreachable

DEFAULT_TIMEOUT = 5.0
PREVIEW_CHARS = 100


def build_upstream_client(
    user_agent: str,
    *,
    timeout_ms: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the shared client used for every upstream call."""
    timeout = timeout_ms / 1000 if timeout_ms else DEFAULT_TIMEOUT
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        follow_redirects=True,
        transport=transport,
    )


async def fetch_json(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout_ms: Optional[int] = None,
    logger: Optional[BoundLogger] = None,
) -> FetchResult:
    """
    GET ``url`` once and classify the outcome.

    Never raises for transport, status or decoding problems; those come back as
    ``Failed`` with the matching reason.
    """
    log = (logger or get_logger(__name__)).bind(url=url)
    timeout = httpx.USE_CLIENT_DEFAULT if timeout_ms is None else timeout_ms / 1000

    log.debug("upstream_fetch_started", timeout_ms=timeout_ms)
    try:
        request = client.get(url, timeout=timeout)
        if timeout_ms is None:
            response = await request
        else:
            # httpx timeouts apply per phase; wait_for bounds the whole call
            response = await asyncio.wait_for(request, timeout_ms / 1000)
    except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
        log.warning("upstream_fetch_failed", reason="timeout", error=str(exc))
        return Failed(Unreachable(f"Request to {url} timed out"))
    except httpx.RequestError as exc:
        log.warning("upstream_fetch_failed", reason="unreachable", error=str(exc))
        return Failed(Unreachable(str(exc) or type(exc).__name__))

    if not response.is_success:
        log.warning(
            "upstream_fetch_failed",
            reason="http_status",
            status_code=response.status_code,
            body_preview=response.text[:PREVIEW_CHARS],
        )
        message = response.reason_phrase or response.text[:PREVIEW_CHARS].strip()
        return Failed(HttpStatus(response.status_code, message))

    try:
        data = response.json()
    except (ValueError, RecursionError) as exc:
        log.warning("upstream_fetch_failed", reason="malformed_body", error=str(exc))
        return Failed(MalformedBody(str(exc) or type(exc).__name__))

    log.debug(
        "upstream_fetch_succeeded",
        status_code=response.status_code,
        body_preview=response.text[:PREVIEW_CHARS],
    )
    return Ok(data)
