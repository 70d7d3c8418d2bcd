from __future__ import annotations

import json

from backend.mapproxy.core.orchestrator import AggregateError, UpstreamSource
from backend.mapproxy.core.responses import NO_STORE, ResponseAssembler, render
from backend.mapproxy.models import Ok, Unreachable


def test_ok_result_maps_to_200_json_with_cors_headers():
    response = ResponseAssembler().to_http_response(Ok({"players": []}))

    assert response.status == 200
    assert response.body == {"players": []}
    assert response.header("content-type") == "application/json"
    assert response.header("Access-Control-Allow-Origin") == "*"
    assert response.header("Cache-Control") == NO_STORE


def test_aggregate_error_maps_to_500_with_readable_message():
    error = AggregateError(source=UpstreamSource.PLAYER, reason=Unreachable("Connection refused"))

    response = ResponseAssembler().to_http_response(error)

    assert response.status == 500
    assert response.body == {"error": "Error fetching player data: Connection refused"}
    assert response.header("Access-Control-Allow-Origin") == "*"


def test_route_not_found_defaults_to_json_message():
    response = ResponseAssembler().route_not_found("/nowhere")

    assert response.status == 404
    assert response.body == {"message": "Route not found"}


def test_route_not_found_can_be_plain_text():
    response = ResponseAssembler(not_found_format="text").route_not_found("/nowhere")

    assert response.status == 404
    assert response.body == "Not Found: /nowhere"
    assert response.header("Content-Type").startswith("text/plain")


def test_preflight_is_204_without_body():
    response = ResponseAssembler().preflight()

    assert response.status == 204
    assert response.body is None
    assert response.header("Access-Control-Allow-Origin") == "*"
    assert response.header("Access-Control-Allow-Methods") == "GET, OPTIONS"
    assert response.header("Access-Control-Allow-Headers") == "*"
    assert response.header("Content-Type") is None


def test_cache_control_can_be_disabled():
    response = ResponseAssembler(no_store=False).to_http_response(Ok({}))

    assert response.header("Cache-Control") is None


def test_render_pretty_prints_json():
    payload = {"markers": {"m1": {"detail": "Base", "positions": [{"x": 5, "y": 64, "z": 5}]}}}

    rendered = render(ResponseAssembler().to_http_response(Ok(payload)))

    assert rendered.status_code == 200
    assert rendered.body == json.dumps(payload, indent=2).encode("utf-8")
    assert rendered.headers["access-control-allow-origin"] == "*"


def test_render_preflight_has_empty_body():
    rendered = render(ResponseAssembler().preflight())

    assert rendered.status_code == 204
    assert rendered.body == b""
