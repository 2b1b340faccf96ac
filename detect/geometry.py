"""Marker geometry helpers.

Pure functions that turn four marker corners into scalar measurements.
Unless stated otherwise, ``corners`` arguments are an array-like of shape
(4, 2) in *pixel* coordinates (bottom-left origin, Y up), ordered top-left,
top-right, bottom-right, bottom-left. ``to_pixel_corners`` is the only
place normalized detector output is scaled into pixels.

These are closed-form approximations, not a calibrated camera model.
Degenerate quadrilaterals (zero-length edges) yield ``None`` rather than
inf/NaN so that nothing invalid reaches the smoothing history.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from contracts import DetectedMarker, EdgeLengths, ImageSize, MarkerPose, Point, TiltEstimate

_EPS = 1e-9


def to_pixel_corners(marker: DetectedMarker, image_size: ImageSize) -> np.ndarray:
    """Scale normalized marker corners into pixel coordinates.

    The bottom-left origin and Y-up orientation are preserved.
    """
    pts = np.asarray(marker.corners, dtype=np.float64).reshape(4, 2)
    return pts * np.array([image_size.width, image_size.height], dtype=np.float64)


def edge_lengths(corners) -> EdgeLengths:
    pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
    tl, tr, br, bl = pts
    return EdgeLengths(
        top=float(np.linalg.norm(tr - tl)),
        bottom=float(np.linalg.norm(br - bl)),
        left=float(np.linalg.norm(bl - tl)),
        right=float(np.linalg.norm(br - tr)),
    )


def centroid(corners) -> Point:
    """Arithmetic mean of the corners, in whatever system they are given."""
    pts = np.asarray(corners, dtype=np.float64).reshape(-1, 2)
    mean = pts.mean(axis=0)
    return (float(mean[0]), float(mean[1]))


def markers_centroid(markers: Iterable[DetectedMarker]) -> Optional[Point]:
    """Mean of every corner of every marker (normalized), or None if empty."""
    points = [corner for marker in markers for corner in marker.corners]
    if not points:
        return None
    return centroid(points)


def _normalize_line_angle(angle_deg: float) -> float:
    """Fold an angle into (-90, 90]."""
    while angle_deg > 90.0:
        angle_deg -= 180.0
    while angle_deg <= -90.0:
        angle_deg += 180.0
    return angle_deg


def in_plane_roll(corners) -> float:
    """Rotation of the marker's horizontal edges relative to the frame, degrees.

    The top and bottom edge angles are averaged to cancel mild perspective
    skew. A marker's edge is a line, so angles are treated modulo 180° and
    the result lies in (-90, 90]; a marker seen rotated by 180° reports the
    same roll. The average is taken on doubled angles so edges that straddle
    the ±90° fold do not cancel each other out.
    """
    pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
    tl, tr, br, bl = pts
    top = math.atan2(tr[1] - tl[1], tr[0] - tl[0])
    bottom = math.atan2(br[1] - bl[1], br[0] - bl[0])

    sin_sum = math.sin(2.0 * top) + math.sin(2.0 * bottom)
    cos_sum = math.cos(2.0 * top) + math.cos(2.0 * bottom)
    if abs(sin_sum) < _EPS and abs(cos_sum) < _EPS:
        # Edges perpendicular to each other: fall back to the plain mean
        raw = math.degrees((top + bottom) / 2.0)
    else:
        raw = math.degrees(math.atan2(sin_sum, cos_sum) / 2.0)
    return _normalize_line_angle(raw)


def distance_estimate_cm(corners, marker_size_cm: float, focal_length_px: float) -> Optional[float]:
    """Pinhole distance from camera to marker.

    distance = real_size * focal_length / apparent_size, where apparent size
    is the mean edge length in pixels. Returns None for a degenerate marker.
    """
    mean_edge = edge_lengths(corners).mean
    if not math.isfinite(mean_edge) or mean_edge <= _EPS:
        return None
    return (marker_size_cm * focal_length_px) / mean_edge


def _ratio_to_angle(ratio: float, gain: float, ratio_range: Tuple[float, float]) -> float:
    low, high = ratio_range
    clamped = max(low, min(high, ratio))
    return math.degrees(math.atan((clamped - 1.0) * gain))


def _plane_normal(tilt_x_deg: float, tilt_y_deg: float) -> Tuple[Tuple[float, float, float], float]:
    tx = math.radians(tilt_x_deg)
    ty = math.radians(tilt_y_deg)
    normal = np.array([math.sin(tx), math.sin(ty), math.cos(tx) * math.cos(ty)])
    normal = normal / np.linalg.norm(normal)
    # Angle against the camera's optical axis; 0° means facing the camera
    cos_angle = float(np.clip(normal[2], -1.0, 1.0))
    return (float(normal[0]), float(normal[1]), float(normal[2])), math.degrees(math.acos(cos_angle))


def tilt_estimate(
    corners,
    gain: float = 2.0,
    ratio_range: Tuple[float, float] = (0.5, 2.0),
    flat_threshold_deg: float = 30.0,
) -> Optional[TiltEstimate]:
    """Estimate plane tilt from perspective distortion of a square marker.

    top/bottom > 1 means the top of the marker is closer than the bottom
    (tilt about the horizontal axis, reported as tilt_y); left/right > 1
    means the left side is closer (tilt_x). Ratios are clamped to
    ``ratio_range`` before ``atan((ratio - 1) * gain)`` so a noisy detection
    cannot produce runaway angles.
    """
    edges = edge_lengths(corners)
    if min(edges.top, edges.bottom, edges.left, edges.right) <= _EPS:
        return None

    tilt_y = _ratio_to_angle(edges.top / edges.bottom, gain, ratio_range)
    tilt_x = _ratio_to_angle(edges.left / edges.right, gain, ratio_range)
    normal, angle = _plane_normal(tilt_x, tilt_y)
    return TiltEstimate(
        tilt_x_deg=tilt_x,
        tilt_y_deg=tilt_y,
        is_flat=abs(tilt_x) < flat_threshold_deg and abs(tilt_y) < flat_threshold_deg,
        normal=normal,
        angle_from_camera_deg=angle,
    )


def average_tilt(tilts: Sequence[Optional[TiltEstimate]], flat_threshold_deg: float = 30.0) -> Optional[TiltEstimate]:
    """Average the tilt of several markers lying on the same sheet."""
    valid = [t for t in tilts if t is not None]
    if not valid:
        return None
    normal = np.mean([t.normal for t in valid], axis=0)
    norm = np.linalg.norm(normal)
    if norm > _EPS:
        normal = normal / norm
    tilt_x = float(np.mean([t.tilt_x_deg for t in valid]))
    tilt_y = float(np.mean([t.tilt_y_deg for t in valid]))
    return TiltEstimate(
        tilt_x_deg=tilt_x,
        tilt_y_deg=tilt_y,
        is_flat=abs(tilt_x) < flat_threshold_deg and abs(tilt_y) < flat_threshold_deg,
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        angle_from_camera_deg=float(np.mean([t.angle_from_camera_deg for t in valid])),
    )


def euler_to_rotation_matrix(roll_deg: float, pitch_deg: float, yaw_deg: float) -> np.ndarray:
    cr, sr = math.cos(math.radians(roll_deg)), math.sin(math.radians(roll_deg))
    cp, sp = math.cos(math.radians(pitch_deg)), math.sin(math.radians(pitch_deg))
    cy, sy = math.cos(math.radians(yaw_deg)), math.sin(math.radians(yaw_deg))
    return np.array(
        [
            [cp * cy, cp * sy, -sp],
            [sr * sp * cy - cr * sy, sr * sp * sy + cr * cy, sr * cp],
            [cr * sp * cy + sr * sy, cr * sp * sy - sr * cy, cr * cp],
        ]
    )


def estimate_pose(corners, image_size: ImageSize, marker_size_m: float = 0.05) -> Optional[MarkerPose]:
    """Approximate marker pose from corner geometry alone.

    Roll is the bottom-edge angle, pitch and yaw are scaled edge-length
    ratios (top/bottom and left/right). Depth uses the pinhole relation with
    the image width standing in for the focal length. Not a PnP solver.
    """
    pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
    edges = edge_lengths(pts)
    if min(edges.top, edges.bottom, edges.left, edges.right) <= _EPS:
        return None

    _, _, br, bl = pts
    roll = math.degrees(math.atan2(br[1] - bl[1], br[0] - bl[0]))
    pitch = (1.0 - edges.top / edges.bottom) * 45.0
    yaw = (1.0 - edges.left / edges.right) * 30.0

    cx, cy = centroid(pts)
    depth = (marker_size_m * image_size.width) / edges.mean
    translation = (
        (cx - image_size.width / 2.0) / 1000.0,
        (cy - image_size.height / 2.0) / 1000.0,
        depth,
    )
    return MarkerPose(
        roll_deg=roll,
        pitch_deg=pitch,
        yaw_deg=yaw,
        rotation_matrix=euler_to_rotation_matrix(roll, pitch, yaw),
        translation=translation,
    )
