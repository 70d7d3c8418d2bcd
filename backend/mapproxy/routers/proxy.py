from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from backend.mapproxy.core.orchestrator import Aggregator, RequestKind
from backend.mapproxy.core.responses import ResponseAssembler, render
from backend.mapproxy.dependencies import get_aggregator, get_assembler

router = APIRouter(tags=["proxy"])


async def _proxy(
    kind: RequestKind,
    aggregator: Aggregator,
    assembler: ResponseAssembler,
    item_id: str | None = None,
) -> Response:
    result = await aggregator.handle(kind, item_id)
    return render(assembler.to_http_response(result))


@router.get("/map")
@router.get("/map/{map_id}")
async def get_map(
    map_id: str | None = None,
    aggregator: Aggregator = Depends(get_aggregator),
    assembler: ResponseAssembler = Depends(get_assembler),
) -> Response:
    """Normalized markers from the map upstream."""
    return await _proxy(RequestKind.MAP, aggregator, assembler, map_id)


@router.get("/player")
@router.get("/player/{player_id}")
async def get_players(
    player_id: str | None = None,
    aggregator: Aggregator = Depends(get_aggregator),
    assembler: ResponseAssembler = Depends(get_assembler),
) -> Response:
    """Live player list, passed through as the upstream sends it."""
    return await _proxy(RequestKind.PLAYER, aggregator, assembler, player_id)


@router.get("/data")
async def get_combined(
    aggregator: Aggregator = Depends(get_aggregator),
    assembler: ResponseAssembler = Depends(get_assembler),
) -> Response:
    """Players and normalized markers in one response; fails if either upstream fails."""
    return await _proxy(RequestKind.COMBINED, aggregator, assembler)
