"""QR marker detection adapter.

Wraps OpenCV's multi-QR detector and converts its output into
``DetectedMarker`` values in normalized, bottom-left-origin coordinates.
Only the corner geometry is used; decoded payloads are ignored.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

try:
    import cv2
except Exception:  # pragma: no cover - handled by consumers
    cv2 = None  # type: ignore[assignment]

from contracts import DetectedMarker
from detect.filters import sanitize_markers


def pixel_quad_to_marker(quad, width: int, height: int) -> DetectedMarker:
    """Convert four top-left-origin pixel corners to a normalized marker.

    OpenCV reports corners clockwise from the top-left of the code, which
    is the corner order ``DetectedMarker`` expects; only the Y axis flips.
    """
    pts = np.asarray(quad, dtype=np.float64).reshape(4, 2)
    corners = tuple((float(x / width), float(1.0 - y / height)) for x, y in pts)
    return DetectedMarker(corners=corners)  # type: ignore[arg-type]


def detect_qr_markers(image: np.ndarray) -> Tuple[List[DetectedMarker], Optional[str]]:
    """Detect all QR codes in a BGR or grayscale image.

    Returns:
        (markers, error). ``error`` is a message when OpenCV is missing or
        the detector failed; markers are then empty.
    """
    if cv2 is None:
        return [], "QR detection unavailable (opencv-python required)."
    if image is None or image.ndim < 2 or image.size == 0:
        return [], "Empty image"
    height, width = image.shape[:2]
    try:
        detector = cv2.QRCodeDetector()
        found, points = detector.detectMulti(image)
    except Exception as exc:  # noqa: BLE001 - surface detector issues
        return [], str(exc)
    if not found or points is None:
        return [], None
    markers = [pixel_quad_to_marker(quad, width, height) for quad in points]
    return sanitize_markers(markers), None
