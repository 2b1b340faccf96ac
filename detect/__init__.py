"""Marker detection input and per-frame geometry."""

from .filters import sanitize_markers
from .geometry import (
    average_tilt,
    centroid,
    distance_estimate_cm,
    edge_lengths,
    estimate_pose,
    in_plane_roll,
    markers_centroid,
    tilt_estimate,
    to_pixel_corners,
)
from .pair import analyze_pair, angle_deviation, classify_distance, expected_diagonal, validate_diagonal

__all__ = [
    "analyze_pair",
    "angle_deviation",
    "average_tilt",
    "centroid",
    "classify_distance",
    "distance_estimate_cm",
    "edge_lengths",
    "estimate_pose",
    "expected_diagonal",
    "in_plane_roll",
    "markers_centroid",
    "sanitize_markers",
    "tilt_estimate",
    "to_pixel_corners",
    "validate_diagonal",
]
