"""
Response assembly.

Maps aggregator results onto immutable ``HttpResponse`` values carrying the
status, the CORS/caching headers and the body. ``render`` is the only place
that touches Starlette response classes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Tuple

from fastapi import Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from backend.mapproxy.core.orchestrator import AggregateError, AggregateResult
from backend.mapproxy.models import Ok

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
NO_STORE = "no-cache, no-store, must-revalidate"
ALLOWED_METHODS = "GET, OPTIONS"
PREFLIGHT_MAX_AGE = "86400"


@dataclass(frozen=True)
class HttpResponse:
    status: int
    headers: Tuple[Tuple[str, str], ...]
    body: Any = None

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None

    @property
    def header_dict(self) -> Dict[str, str]:
        return dict(self.headers)


class PrettyJSONResponse(JSONResponse):
    """JSON response indented with two spaces."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=2,
        ).encode("utf-8")


class ResponseAssembler:
    def __init__(
        self,
        *,
        no_store: bool = True,
        not_found_format: Literal["json", "text"] = "json",
        allow_origin: str = "*",
    ) -> None:
        self.no_store = no_store
        self.not_found_format = not_found_format
        self.allow_origin = allow_origin

    def cors_headers(self) -> Tuple[Tuple[str, str], ...]:
        headers = [
            ("Access-Control-Allow-Origin", self.allow_origin),
            ("Access-Control-Allow-Methods", ALLOWED_METHODS),
            ("Access-Control-Allow-Headers", "*"),
        ]
        if self.no_store:
            headers.append(("Cache-Control", NO_STORE))
        return tuple(headers)

    def json(self, status_code: int, body: Any) -> HttpResponse:
        return HttpResponse(
            status=status_code,
            headers=(("Content-Type", JSON_CONTENT_TYPE),) + self.cors_headers(),
            body=body,
        )

    def to_http_response(self, result: AggregateResult) -> HttpResponse:
        if isinstance(result, Ok):
            return self.json(status.HTTP_200_OK, result.data)
        if isinstance(result, AggregateError):
            return self.json(status.HTTP_500_INTERNAL_SERVER_ERROR, {"error": result.message})
        raise TypeError(f"unsupported result type {type(result).__name__}")

    def route_not_found(self, path: str) -> HttpResponse:
        if self.not_found_format == "text":
            return HttpResponse(
                status=status.HTTP_404_NOT_FOUND,
                headers=(("Content-Type", TEXT_CONTENT_TYPE),) + self.cors_headers(),
                body=f"Not Found: {path}",
            )
        return self.json(status.HTTP_404_NOT_FOUND, {"message": "Route not found"})

    def error(self, status_code: int, message: str) -> HttpResponse:
        if status_code >= 500:
            return self.json(status_code, {"error": message})
        return self.json(status_code, {"message": message})

    def preflight(self) -> HttpResponse:
        return HttpResponse(
            status=status.HTTP_204_NO_CONTENT,
            headers=self.cors_headers() + (("Access-Control-Max-Age", PREFLIGHT_MAX_AGE),),
        )


def render(response: HttpResponse) -> Response:
    headers = response.header_dict
    if response.status == status.HTTP_204_NO_CONTENT or response.body is None:
        return Response(status_code=response.status, headers=headers)
    if response.header("Content-Type") == JSON_CONTENT_TYPE:
        return PrettyJSONResponse(content=response.body, status_code=response.status, headers=headers)
    return PlainTextResponse(content=str(response.body), status_code=response.status, headers=headers)
