"""Core data contracts for marker detection, alignment, and recording quality.

Coordinate systems used throughout the project:

- *normalized*: image coordinates in [0, 1], origin at the bottom-left
  corner of the frame, Y increasing upward. Detector output and centering
  guidance use this system.
- *pixel*: the same bottom-left origin and Y-up orientation, scaled by the
  session image size. Distances and angles are measured here so that the
  frame aspect ratio does not distort them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

Point = Tuple[float, float]
Corners = Tuple[Point, Point, Point, Point]


@dataclass(frozen=True)
class ImageSize:
    width: int
    height: int


@dataclass(frozen=True)
class DetectedMarker:
    """One marker observation in a single frame.

    Attributes:
        corners: Top-left, top-right, bottom-right, bottom-left corner in
            normalized coordinates (bottom-left origin, Y up)
    """

    corners: Corners

    def centroid(self) -> Point:
        """Arithmetic mean of the four corners (normalized)."""
        xs = [c[0] for c in self.corners]
        ys = [c[1] for c in self.corners]
        return (sum(xs) / 4.0, sum(ys) / 4.0)


class DistanceClass(str, Enum):
    TOO_FAR = "too_far"
    TOO_CLOSE = "too_close"
    OPTIMAL = "optimal"


class TemplateVariant(str, Enum):
    """Marker-pair layout printed on the reference sheet.

    LEFT_HAND places the markers top-left and bottom-right, RIGHT_HAND
    places them bottom-left and top-right.
    """

    LEFT_HAND = "left"
    RIGHT_HAND = "right"

    @property
    def template_filename(self) -> str:
        return f"{self.value}-template"


@dataclass(frozen=True)
class EdgeLengths:
    """Side lengths of a marker quadrilateral in pixels."""

    top: float
    bottom: float
    left: float
    right: float

    @property
    def mean(self) -> float:
        return (self.top + self.bottom + self.left + self.right) / 4.0


@dataclass(frozen=True)
class TiltEstimate:
    """Perspective-based estimate of how far the marker plane is tilted.

    tilt_x_deg comes from the left/right edge ratio, tilt_y_deg from the
    top/bottom edge ratio. Both are 0 for a marker facing the camera.
    """

    tilt_x_deg: float
    tilt_y_deg: float
    is_flat: bool
    normal: Tuple[float, float, float] = (0.0, 0.0, 1.0)
    angle_from_camera_deg: float = 0.0


@dataclass(frozen=True)
class MarkerPose:
    """Closed-form pose approximation of a single marker."""

    roll_deg: float
    pitch_deg: float
    yaw_deg: float
    rotation_matrix: np.ndarray = field(compare=False, repr=False)
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def tilt_angle_deg(self) -> float:
        return abs(self.pitch_deg)


@dataclass(frozen=True)
class PairMeasurement:
    """Geometry of the first two markers reported in a frame."""

    found: bool
    pixel_distance: Optional[float] = None
    angle_deg: Optional[float] = None
    distance_class: Optional[DistanceClass] = None
    orientation_valid: bool = False

    @classmethod
    def not_found(cls) -> "PairMeasurement":
        return cls(found=False)


@dataclass(frozen=True)
class DetectionHistoryEntry:
    timestamp_s: float
    was_detected: bool
    markers: Tuple[DetectedMarker, ...] = ()
    distance_cm: Optional[float] = None
    roll_deg: float = 0.0


@dataclass(frozen=True)
class SmoothedDetection:
    """Majority-vote detection state over the smoothing window.

    markers/distance_cm/roll_deg describe the current frame, or the most
    recent detected frame in the window when the current frame missed but
    the vote still says detected.
    """

    timestamp_s: float
    detected: bool
    current_detected: bool
    markers: Tuple[DetectedMarker, ...] = ()
    distance_cm: Optional[float] = None
    roll_deg: float = 0.0
    detection_ratio: float = 0.0
    window_count: int = 0
    reused_last_detection: bool = False


class FeedbackCode(str, Enum):
    """Highest-priority unmet alignment condition, or READY."""

    SEARCHING = "searching"
    MOVE_CLOSER = "move_closer"
    MOVE_FARTHER = "move_farther"
    ADJUST_PAPER = "adjust_paper"
    ANGLE_DEVICE = "angle_device"
    READY = "ready"


@dataclass(frozen=True)
class AlignmentState:
    """Per-frame alignment snapshot consumed by presentation.

    Replaced wholesale every processed frame; never mutated.
    """

    both_markers_detected: bool = False
    markers_match_template: bool = False
    distance_class: Optional[DistanceClass] = None
    orientation_valid: bool = False
    viewing_angle_good: bool = True
    marker_corners: Tuple[DetectedMarker, ...] = ()
    pixel_distance: float = 0.0
    angle_deg: float = 0.0
    distance_cm: Optional[float] = None
    roll_deg: float = 0.0
    center: Point = (0.5, 0.5)
    plane_tilt: Optional[TiltEstimate] = None
    pose: Optional[MarkerPose] = None
    is_roll_good: bool = True
    is_centered: bool = True
    feedback: FeedbackCode = FeedbackCode.SEARCHING
    message: str = "Position both markers in frame"
    hint: Optional[str] = "Both corner markers should be visible"
    feedback_since_s: float = 0.0
    timestamp_s: float = 0.0

    @property
    def is_ready_to_record(self) -> bool:
        return (
            self.both_markers_detected
            and self.markers_match_template
            and self.distance_class == DistanceClass.OPTIMAL
            and self.orientation_valid
            and self.viewing_angle_good
        )


@dataclass(frozen=True)
class MovementSample:
    timestamp_s: float
    centroid: Point


class MovementWarning(str, Enum):
    DRIFTING = "drifting"
    TOO_MUCH_MOVEMENT = "too_much_movement"
    MARKER_LOST = "marker_lost"

    @property
    def message(self) -> str:
        return _WARNING_MESSAGES[self]


_WARNING_MESSAGES = {
    MovementWarning.DRIFTING: "Keep the markers inside the guide box",
    MovementWarning.TOO_MUCH_MOVEMENT: "Hold steady, too much movement",
    MovementWarning.MARKER_LOST: "Marker lost, keep both markers in frame",
}


@dataclass(frozen=True)
class RecordingQuality:
    """Post-recording verdict from the movement monitor."""

    total_frames: int
    lost_frames: int
    lost_ratio: float
    avg_movement: float
    duration_s: float
    had_excessive_movement: bool
    reasons: Tuple[str, ...] = ()
