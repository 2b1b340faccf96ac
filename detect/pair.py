"""Marker pair analysis: spacing, diagonal angle and template orientation."""

from __future__ import annotations

import math
from typing import Sequence

from configs.settings import PairConfig
from contracts import DetectedMarker, DistanceClass, ImageSize, PairMeasurement, TemplateVariant


def classify_distance(pixel_distance: float, config: PairConfig) -> DistanceClass:
    """Compare marker spacing against the target range.

    Smaller spacing means the camera is farther from the sheet, so a
    spacing below the range asks the operator to move closer.
    """
    if pixel_distance < config.min_pixel_distance:
        return DistanceClass.TOO_FAR
    if pixel_distance > config.max_pixel_distance:
        return DistanceClass.TOO_CLOSE
    return DistanceClass.OPTIMAL


def angle_deviation(measured_deg: float, expected_deg: float) -> float:
    """Smallest difference between two line angles, in [0, 90].

    A line has no direction, so ``expected`` and ``expected ± 180`` are the
    same orientation.
    """
    return abs(((measured_deg - expected_deg + 90.0) % 180.0) - 90.0)


def validate_diagonal(measured_deg: float, expected_deg: float, tolerance_deg: float) -> bool:
    return angle_deviation(measured_deg, expected_deg) < tolerance_deg


def expected_diagonal(variant: TemplateVariant, config: PairConfig) -> float:
    if variant == TemplateVariant.LEFT_HAND:
        return config.left_diagonal_deg
    return config.right_diagonal_deg


def analyze_pair(
    markers: Sequence[DetectedMarker],
    image_size: ImageSize,
    variant: TemplateVariant,
    config: PairConfig,
) -> PairMeasurement:
    """Measure the first two markers in detector order.

    Args:
        markers: Sanitized markers in normalized coordinates
        image_size: Session resolution used to convert to pixels
        variant: Active template layout
        config: Target spacing and angle tolerances

    Returns:
        PairMeasurement; ``found`` is False with fewer than two markers
    """
    if len(markers) < 2:
        return PairMeasurement.not_found()

    x1, y1 = markers[0].centroid()
    x2, y2 = markers[1].centroid()
    dx = (x2 - x1) * image_size.width
    dy = (y2 - y1) * image_size.height

    pixel_distance = math.hypot(dx, dy)
    # Y is up, so a positive angle rises to the right
    angle = math.degrees(math.atan2(dy, dx))
    if angle == -180.0:
        angle = 180.0

    return PairMeasurement(
        found=True,
        pixel_distance=pixel_distance,
        angle_deg=angle,
        distance_class=classify_distance(pixel_distance, config),
        orientation_valid=validate_diagonal(
            angle, expected_diagonal(variant, config), config.max_angle_deviation_deg
        ),
    )
