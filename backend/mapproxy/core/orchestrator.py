from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote

import httpx
from structlog.stdlib import BoundLogger

from backend.mapproxy.core.config import UpstreamConfig
from backend.mapproxy.core.logging import get_logger
from backend.mapproxy.models import FailureReason, Failed, Ok, RequestInfo, marker_set_to_dict
from backend.mapproxy.upstream.fetcher import build_upstream_client, fetch_json
from backend.mapproxy.upstream.normalizer import normalize_markers


class RequestKind(str, Enum):
    MAP = "map"
    PLAYER = "player"
    COMBINED = "combined"
    DEBUG = "debug"


class UpstreamSource(str, Enum):
    PLAYER = "player"
    MAP = "map"


@dataclass(frozen=True)
class AggregateError:
    """An upstream call failed; ``source`` names the upstream responsible, ``kind`` the request it broke."""

    source: UpstreamSource
    reason: FailureReason
    kind: Optional[RequestKind] = None

    @property
    def message(self) -> str:
        if self.kind is None or self.kind.value == self.source.value:
            return f"Error fetching {self.source.value} data: {self.reason.describe()}"
        return f"Error fetching {self.kind.value} data: {self.source.value} upstream: {self.reason.describe()}"


AggregateResult = Union[Ok, AggregateError]


class Aggregator:
    """
    Resolves one request kind into a JSON-ready payload.

    Holds the immutable upstream configuration and the shared HTTP client;
    nothing else survives between requests.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        client: Optional[httpx.AsyncClient] = None,
        *,
        logger: Optional[BoundLogger] = None,
    ) -> None:
        self.config = config
        self._client = client or build_upstream_client(config.user_agent, timeout_ms=config.timeout_ms)
        self.logger = logger or get_logger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def handle(
        self,
        kind: Union[RequestKind, str],
        item_id: Optional[str] = None,
        request_info: Optional[RequestInfo] = None,
    ) -> AggregateResult:
        kind = RequestKind(kind)
        if kind is RequestKind.MAP:
            return await self.map_data(item_id)
        if kind is RequestKind.PLAYER:
            return await self.player_data(item_id)
        if kind is RequestKind.COMBINED:
            return await self.combined_data()
        if request_info is None:
            raise ValueError("debug requests need the inbound request info")
        return Ok(self.debug_data(request_info))

    async def map_data(self, item_id: Optional[str] = None) -> AggregateResult:
        result = await self._fetch(UpstreamSource.MAP, item_id)
        if isinstance(result, AggregateError):
            return result
        return Ok(self._map_payload(result.data))

    async def player_data(self, item_id: Optional[str] = None) -> AggregateResult:
        result = await self._fetch(UpstreamSource.PLAYER, item_id)
        if isinstance(result, AggregateError):
            return result
        return Ok({"players": self._players(result.data)})

    async def combined_data(self) -> AggregateResult:
        player_result, map_result = await asyncio.gather(
            self._fetch(UpstreamSource.PLAYER),
            self._fetch(UpstreamSource.MAP),
        )
        for result in (player_result, map_result):
            if isinstance(result, AggregateError):
                self.logger.warning(
                    "combined_fetch_failed",
                    source=result.source.value,
                    error=result.reason.describe(),
                )
                return replace(result, kind=RequestKind.COMBINED)

        return Ok({
            "players": self._players(player_result.data),
            "map": self._map_payload(map_result.data),
        })

    def debug_data(self, request_info: RequestInfo) -> Dict[str, Any]:
        return {
            "message": "Debug endpoint reached",
            "path": request_info.path,
            "request": request_info.to_dict(),
        }

    def upstream_url(self, source: UpstreamSource, item_id: Optional[str] = None) -> str:
        base = self.config.map_data_url if source is UpstreamSource.MAP else self.config.player_data_url
        if item_id is None or not self.config.forward_ids:
            return base
        return f"{base}{quote(str(item_id), safe='')}"

    async def _fetch(self, source: UpstreamSource, item_id: Optional[str] = None) -> AggregateResult:
        url = self.upstream_url(source, item_id)
        result = await fetch_json(
            url,
            client=self._client,
            timeout_ms=self.config.timeout_ms,
            logger=self.logger.bind(source=source.value),
        )
        if isinstance(result, Failed):
            return AggregateError(source=source, reason=result.reason)
        return result

    def _map_payload(self, data: Any) -> Dict[str, Any]:
        markers = normalize_markers(data, root_key=self.config.map_root_key, logger=self.logger)
        return marker_set_to_dict(markers)

    @staticmethod
    def _players(data: Any) -> Any:
        if not isinstance(data, Mapping):
            return []
        return data.get("players") or []
