"""Shared fixtures: synthetic markers and configurations."""

import math

import pytest

from configs.settings import AlignmentConfig
from contracts import DetectedMarker, ImageSize

IMAGE = ImageSize(1920, 1080)


def square_marker(cx: float, cy: float, size_px: float = 100.0, roll_deg: float = 0.0,
                  image: ImageSize = IMAGE) -> DetectedMarker:
    """Square marker centered at normalized (cx, cy), Y up, edge ``size_px`` pixels."""
    half = size_px / 2.0
    offsets = [(-half, half), (half, half), (half, -half), (-half, -half)]  # TL, TR, BR, BL
    c, s = math.cos(math.radians(roll_deg)), math.sin(math.radians(roll_deg))
    px, py = cx * image.width, cy * image.height
    corners = []
    for dx, dy in offsets:
        rx = dx * c - dy * s
        ry = dx * s + dy * c
        corners.append(((px + rx) / image.width, (py + ry) / image.height))
    return DetectedMarker(corners=tuple(corners))


def pixel_square(size_px: float = 100.0, origin=(500.0, 500.0)):
    """Axis-aligned square in pixel coordinates: TL, TR, BR, BL."""
    x, y = origin
    return [(x, y + size_px), (x + size_px, y + size_px), (x + size_px, y), (x, y)]


@pytest.fixture
def config():
    return AlignmentConfig()


@pytest.fixture
def marker_factory():
    return square_marker


@pytest.fixture
def ready_pair():
    """Right-hand layout: bottom-left and top-right markers ~500px apart at +45°."""
    # 354px horizontal, 354px vertical => ~500px at 45°
    dx = 354.0 / 1920.0
    dy = 354.0 / 1080.0
    return [
        square_marker(0.5 - dx / 2, 0.33 - dy / 2),
        square_marker(0.5 + dx / 2, 0.33 + dy / 2),
    ]
