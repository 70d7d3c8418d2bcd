"""Shared fixtures: upstream payloads shaped like the live map server's responses."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from backend.mapproxy.core.config import DEFAULT_MAP_ROOT_KEY, Settings, UpstreamConfig

PLAYER_URL = "http://upstream.test/maps/world/live/players.json"
MAP_URL = "http://upstream.test/maps/world/markers.json"


def map_payload(markers: Dict[str, Any]) -> Dict[str, Any]:
    return {DEFAULT_MAP_ROOT_KEY: {"label": "Lands", "markers": markers}}


@pytest.fixture
def build_map_payload():
    return map_payload


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(
        player_data_url=PLAYER_URL,
        map_data_url=MAP_URL,
        timeout_ms=1000,
        user_agent="MapProxyTest/1.0",
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        player_data_url=PLAYER_URL,
        map_data_url=MAP_URL,
        upstream_timeout_ms=1000,
        upstream_user_agent="MapProxyTest/1.0",
    )


@pytest.fixture
def sample_map_payload() -> Dict[str, Any]:
    return map_payload({
        "land_spawn": {
            "type": "shape",
            "detail": "<div class=\"land\"><b>Spawn</b>  Town</div>",
            "position": {"x": 10, "y": 70, "z": -4},
            "shape": [{"x": 0, "z": 0}, {"x": 20, "z": 0}, {"x": 20, "z": -8}],
            "shapeY": 64,
        },
        "land_farm": {
            "type": "poi",
            "detail": "<i>Farm</i>",
            "position": [{"x": 1, "y": 2, "z": 3}, {"x": 4, "y": 5, "z": 6}],
            "positions": {"x": 1, "y": 2, "z": 3},
        },
        "label_only": {"type": "html", "detail": "<p>No geometry here</p>"},
        "broken": {"detail": "Broken", "position": {"x": 1, "y": 2}},
    })


@pytest.fixture
def sample_player_payload() -> Dict[str, Any]:
    return {
        "players": [
            {
                "uuid": "7a1c7c4e-1f43-4c1c-9b8e-6f1f9c0d2a11",
                "name": "Steve",
                "foreign": False,
                "position": {"x": 12.5, "y": 64.0, "z": -3.25},
                "rotation": {"pitch": 0.0, "yaw": 90.0, "roll": 0.0},
            }
        ]
    }
