"""Operator guidance hints derived from an alignment snapshot.

All checks here are informational. They drive on-screen arrows and hints
but never gate ``AlignmentState.is_ready_to_record``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from configs.settings import GuidanceConfig
from contracts import Point


class CenteringDirection(str, Enum):
    """Which way to move the camera to bring the markers into position."""

    NONE = "none"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    UP_LEFT = "up_left"
    UP_RIGHT = "up_right"
    DOWN_LEFT = "down_left"
    DOWN_RIGHT = "down_right"

    @property
    def message(self) -> str:
        if self is CenteringDirection.NONE:
            return "Center the markers"
        words = self.value.split("_")
        return "Move camera " + " and ".join(words)


def is_roll_good(roll_deg: float, config: GuidanceConfig) -> bool:
    return abs(roll_deg) <= config.roll_tolerance_deg


def is_centered(center: Point, config: GuidanceConfig) -> bool:
    """Horizontal check is strict around 0.5; vertical targets the lower frame."""
    x, y = center
    return (
        abs(x - 0.5) <= config.horizontal_center_tolerance
        and abs(y - config.ideal_vertical_center) <= config.vertical_center_tolerance
    )


def centering_direction(center: Point, config: GuidanceConfig) -> CenteringDirection:
    """Direction to move the camera, given the marker center (normalized, Y up).

    Markers left of center mean the camera should move left, markers above
    the ideal height mean it should move up.
    """
    x, y = center
    h_tol = config.horizontal_center_tolerance
    v_tol = config.vertical_center_tolerance
    ideal_y = config.ideal_vertical_center

    horizontal = ""
    if x < 0.5 - h_tol:
        horizontal = "left"
    elif x > 0.5 + h_tol:
        horizontal = "right"

    vertical = ""
    if y > ideal_y + v_tol:
        vertical = "up"
    elif y < ideal_y - v_tol:
        vertical = "down"

    if not horizontal and not vertical:
        return CenteringDirection.NONE
    key = "_".join(part for part in (vertical, horizontal) if part)
    return CenteringDirection(key)


def roll_hint(roll_deg: float, config: GuidanceConfig) -> Optional[Tuple[str, str]]:
    """(action, detail) for a rolled marker, or None when within tolerance."""
    if is_roll_good(roll_deg, config):
        return None
    action = "Rotate device clockwise" if roll_deg < 0 else "Rotate device counter-clockwise"
    detail = (
        f"Marker is tilted {abs(roll_deg):.0f}°, straighten to "
        f"±{config.roll_tolerance_deg:.0f}°"
    )
    return action, detail


def viewing_angle_hint(pitch_deg: Optional[float], range_deg: Tuple[float, float]) -> Optional[str]:
    """'Tilt up' when looking down too steeply, 'Tilt down' when too shallow."""
    if pitch_deg is None:
        return None
    low, high = range_deg
    if pitch_deg > high:
        return "Tilt up"
    if pitch_deg < low:
        return "Tilt down"
    return None
