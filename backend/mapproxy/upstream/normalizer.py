"""
Marker normalization.

Turns the raw marker mapping published by the upstream map provider into
canonical markers: HTML-free detail text plus a de-duplicated list of world
positions. The provider encodes geometry in several ways (a single ``position``,
an array of positions, or a flat ``shape`` outline with a shared ``shapeY``),
and may add extra points under ``positions``. Each encoding is parsed once into
a geometry variant before points are merged.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional

from structlog.stdlib import BoundLogger

from backend.mapproxy.core.logging import get_logger
from backend.mapproxy.models import (
    CanonicalMarker,
    Geometry,
    MarkerSet,
    Point,
    PointArray,
    ShapePolygon,
    SinglePoint,
    is_coordinate,
)

HTML_TAG_RE = re.compile(r"<[^>]+>")


class MarkerFormatError(ValueError):
    """Raised when a single marker record cannot be interpreted."""


def strip_html(text: str) -> str:
    """Remove ``<...>`` tags. Entities are left as they are."""
    return HTML_TAG_RE.sub("", text)


def _detail_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def parse_point(raw: Any) -> Point:
    if not isinstance(raw, Mapping):
        raise MarkerFormatError(f"point must be an object, got {type(raw).__name__}")
    try:
        return Point(raw["x"], raw["y"], raw["z"])
    except KeyError as exc:
        raise MarkerFormatError(f"point is missing coordinate {exc.args[0]!r}") from exc


def parse_points(raw: Any, field: str) -> Optional[Geometry]:
    """Parse a ``position``-style field: one object or an array of objects."""
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return SinglePoint(parse_point(raw))
    if isinstance(raw, list):
        return PointArray(tuple(parse_point(item) for item in raw))
    raise MarkerFormatError(f"{field} must be an object or an array, got {type(raw).__name__}")


def parse_shape(shape: Any, shape_y: Any) -> Optional[ShapePolygon]:
    if shape is None:
        return None
    if not isinstance(shape, list):
        raise MarkerFormatError(f"shape must be an array, got {type(shape).__name__}")
    if not is_coordinate(shape_y):
        raise MarkerFormatError(f"shapeY must be a number, got {shape_y!r}")

    outline = []
    for corner in shape:
        if not isinstance(corner, Mapping):
            raise MarkerFormatError("shape point must be an object")
        x, z = corner.get("x"), corner.get("z")
        if not (is_coordinate(x) and is_coordinate(z)):
            raise MarkerFormatError(f"shape point needs numeric x and z, got {dict(corner)!r}")
        outline.append((x, z))
    return ShapePolygon(tuple(outline), shape_y)


def record_geometries(record: Mapping[str, Any]) -> List[Geometry]:
    """Geometry sources of one record, in precedence order."""
    geometries = [
        parse_points(record.get("position"), "position"),
        parse_shape(record.get("shape"), record.get("shapeY")),
        parse_points(record.get("positions"), "positions"),
    ]
    return [geometry for geometry in geometries if geometry is not None]


def normalize_record(record: Any) -> Optional[CanonicalMarker]:
    """
    Normalize one upstream record.

    Returns ``None`` when the record has no detail or no resolvable position.
    Raises ``MarkerFormatError`` for records that are structurally broken.
    """
    if not isinstance(record, Mapping):
        raise MarkerFormatError(f"marker must be an object, got {type(record).__name__}")

    raw_detail = record.get("detail")
    if raw_detail is None:
        return None

    candidates = [point for geometry in record_geometries(record) for point in geometry.points()]
    positions = tuple(dict.fromkeys(candidates))
    if not positions:
        return None

    detail = strip_html(_detail_text(raw_detail).strip()).strip()
    if not detail:
        return None
    return CanonicalMarker(detail=detail, positions=positions)


def normalize_markers(
    payload: Any,
    *,
    root_key: str,
    logger: Optional[BoundLogger] = None,
) -> MarkerSet:
    """
    Normalize the full upstream map payload into a marker set.

    Bad records are skipped one by one; a payload without the expected
    ``{root_key: {"markers": {...}}}`` container yields an empty set.
    """
    log = logger or get_logger(__name__)

    root = payload.get(root_key) if isinstance(payload, Mapping) else None
    raw_markers = root.get("markers") if isinstance(root, Mapping) else None
    if not isinstance(raw_markers, Mapping):
        log.warning("marker_root_missing", root_key=root_key)
        return {}

    markers: Dict[str, CanonicalMarker] = {}
    skipped = 0
    for key, record in raw_markers.items():
        try:
            marker = normalize_record(record)
        except (ValueError, TypeError) as exc:
            skipped += 1
            log.debug("marker_skipped", marker_id=key, error=str(exc))
            continue
        if marker is not None:
            markers[key] = marker

    log.debug(
        "markers_normalized",
        total_records=len(raw_markers),
        emitted=len(markers),
        skipped=skipped,
    )
    return markers
