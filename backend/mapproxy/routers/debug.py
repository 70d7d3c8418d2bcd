from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from backend.mapproxy.core.orchestrator import Aggregator, RequestKind
from backend.mapproxy.core.responses import ResponseAssembler, render
from backend.mapproxy.dependencies import get_aggregator, get_assembler, request_info
from backend.mapproxy.models import RequestInfo

router = APIRouter(tags=["debug"])


@router.get("/debug")
async def debug(
    info: RequestInfo = Depends(request_info),
    aggregator: Aggregator = Depends(get_aggregator),
    assembler: ResponseAssembler = Depends(get_assembler),
) -> Response:
    """Echo the inbound request back without touching the upstream."""
    result = await aggregator.handle(RequestKind.DEBUG, request_info=info)
    return render(assembler.to_http_response(result))
