"""Ingestion filter for detector output."""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from contracts import DetectedMarker
from log_config.logger import get_logger

logger = get_logger(__name__)

# Normalized corners may sit slightly off-frame; anything beyond this is garbage
COORD_MIN = -1.0
COORD_MAX = 2.0


def _coerce_marker(raw: Any) -> Optional[DetectedMarker]:
    corners = raw.corners if isinstance(raw, DetectedMarker) else raw
    try:
        points = [(float(x), float(y)) for x, y in corners]
    except (TypeError, ValueError):
        return None
    if len(points) != 4:
        return None
    if not all(math.isfinite(v) for point in points for v in point):
        return None
    if not all(COORD_MIN <= v <= COORD_MAX for point in points for v in point):
        return None
    return DetectedMarker(corners=tuple(points))  # type: ignore[arg-type]


def is_finite_marker(raw: Any) -> bool:
    return _coerce_marker(raw) is not None


def sanitize_markers(raw_markers: Optional[Iterable[Any]]) -> list[DetectedMarker]:
    """Drop malformed detections, keeping detector order.

    Accepts DetectedMarker instances or bare sequences of four (x, y)
    points. Anything with the wrong shape, a NaN/inf coordinate or a
    coordinate far outside the normalized frame is discarded and treated
    as not detected this frame.
    """
    if raw_markers is None:
        return []
    output: list[DetectedMarker] = []
    dropped = 0
    for raw in raw_markers:
        marker = _coerce_marker(raw)
        if marker is None:
            dropped += 1
            continue
        output.append(marker)
    if dropped:
        logger.debug(f"Discarded {dropped} malformed marker detection(s)")
    return output
