"""Answers CORS preflight requests before they reach the router."""

from __future__ import annotations

from typing import Any, Dict

from backend.mapproxy.core.responses import ResponseAssembler, render


class PreflightMiddleware:
    """ASGI middleware replying 204 with the CORS header set to every ``OPTIONS`` request."""

    def __init__(self, app: Any, assembler: ResponseAssembler):
        self.app = app
        self.assembler = assembler

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http" or scope.get("method") != "OPTIONS":
            await self.app(scope, receive, send)
            return

        response = render(self.assembler.preflight())
        await response(scope, receive, send)
