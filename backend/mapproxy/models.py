"""
Value types shared by the fetcher, the marker normalizer and the aggregator.

Everything here is immutable and lives for a single inbound request.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Dict, Tuple, Union


def is_coordinate(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class Point:
    """A world coordinate. Equality is structural over all three components."""

    x: Real
    y: Real
    z: Real

    def __post_init__(self):
        for axis in ("x", "y", "z"):
            if not is_coordinate(getattr(self, axis)):
                raise ValueError(f"Point {axis} must be a finite number, got {getattr(self, axis)!r}")

    def to_dict(self) -> Dict[str, Real]:
        return {"x": self.x, "y": self.y, "z": self.z}


# Geometry variants emitted by the upstream marker provider


@dataclass(frozen=True)
class SinglePoint:
    point: Point

    def points(self) -> Tuple[Point, ...]:
        return (self.point,)


@dataclass(frozen=True)
class PointArray:
    items: Tuple[Point, ...]

    def points(self) -> Tuple[Point, ...]:
        return self.items


@dataclass(frozen=True)
class ShapePolygon:
    """A flat polygon outline of ``(x, z)`` pairs sharing one height."""

    outline: Tuple[Tuple[Real, Real], ...]
    height: Real

    def points(self) -> Tuple[Point, ...]:
        return tuple(Point(x, self.height, z) for x, z in self.outline)


Geometry = Union[SinglePoint, PointArray, ShapePolygon]


@dataclass(frozen=True)
class CanonicalMarker:
    detail: str
    positions: Tuple[Point, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.detail,
            "positions": [point.to_dict() for point in self.positions],
        }


MarkerSet = Dict[str, CanonicalMarker]


def marker_set_to_dict(markers: MarkerSet) -> Dict[str, Any]:
    return {"markers": {key: marker.to_dict() for key, marker in markers.items()}}


# Upstream fetch outcomes


@dataclass(frozen=True)
class Unreachable:
    """Connection error or timeout before a response arrived."""

    cause: str

    def describe(self) -> str:
        return self.cause


@dataclass(frozen=True)
class HttpStatus:
    code: int
    message: str

    def describe(self) -> str:
        return f"Status {self.code}: {self.message}"


@dataclass(frozen=True)
class MalformedBody:
    detail: str

    def describe(self) -> str:
        return f"Malformed response body: {self.detail}"


FailureReason = Union[Unreachable, HttpStatus, MalformedBody]


@dataclass(frozen=True)
class Ok:
    data: Any


@dataclass(frozen=True)
class Failed:
    reason: FailureReason


FetchResult = Union[Ok, Failed]


@dataclass(frozen=True)
class RequestInfo:
    """The parts of an inbound request echoed by the debug endpoint."""

    method: str
    path: str
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "url": self.url,
            "headers": dict(self.headers),
        }


