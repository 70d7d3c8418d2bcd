from __future__ import annotations

from fastapi import Request

from backend.mapproxy.core.orchestrator import Aggregator
from backend.mapproxy.core.responses import ResponseAssembler
from backend.mapproxy.models import RequestInfo


def get_aggregator(request: Request) -> Aggregator:
    return request.app.state.aggregator


def get_assembler(request: Request) -> ResponseAssembler:
    return request.app.state.assembler


def request_info(request: Request) -> RequestInfo:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return RequestInfo(
        method=request.method,
        path=request.url.path,
        url=url,
        headers=tuple(request.headers.items()),
    )
