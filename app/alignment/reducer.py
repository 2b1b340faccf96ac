"""Per-frame alignment reducer.

Folds the pair measurement, the smoothed detection and the viewing-angle
flag into a fresh ``AlignmentState``. Only the highest-priority unmet
condition is surfaced to the operator:

1. markers not detected (smoothed)
2. marker spacing out of range
3. diagonal orientation invalid
4. device viewing angle out of range
5. ready
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from app.alignment.guidance import is_centered, is_roll_good
from configs.settings import AlignmentConfig
from contracts import (
    AlignmentState,
    DistanceClass,
    FeedbackCode,
    MarkerPose,
    PairMeasurement,
    SmoothedDetection,
    TiltEstimate,
)
from detect.geometry import (
    average_tilt,
    estimate_pose,
    markers_centroid,
    tilt_estimate,
    to_pixel_corners,
)

FEEDBACK_TEXT: Dict[FeedbackCode, Tuple[str, Optional[str]]] = {
    FeedbackCode.SEARCHING: ("Position both markers in frame", "Both corner markers should be visible"),
    FeedbackCode.MOVE_CLOSER: ("Move closer", "Adjust distance until indicator is green"),
    FeedbackCode.MOVE_FARTHER: ("Move farther away", "Adjust distance until indicator is green"),
    FeedbackCode.ADJUST_PAPER: ("Paper is too tilted", "Adjust paper angle"),
    FeedbackCode.ANGLE_DEVICE: ("Angle your device properly", "Don't point straight down at the paper"),
    FeedbackCode.READY: ("Perfect, ready to record", None),
}


def select_feedback(
    detected: bool,
    distance_class: Optional[DistanceClass],
    orientation_valid: bool,
    viewing_angle_good: bool,
) -> FeedbackCode:
    if not detected:
        return FeedbackCode.SEARCHING
    if distance_class == DistanceClass.TOO_FAR:
        return FeedbackCode.MOVE_CLOSER
    if distance_class == DistanceClass.TOO_CLOSE:
        return FeedbackCode.MOVE_FARTHER
    if not orientation_valid:
        return FeedbackCode.ADJUST_PAPER
    if not viewing_angle_good:
        return FeedbackCode.ANGLE_DEVICE
    return FeedbackCode.READY


def _plane_tilt(smoothed: SmoothedDetection, config: AlignmentConfig) -> Optional[TiltEstimate]:
    marker_config = config.marker
    tilts = [
        tilt_estimate(
            to_pixel_corners(marker, config.image.size),
            gain=marker_config.tilt_gain,
            ratio_range=marker_config.tilt_ratio_range,
            flat_threshold_deg=marker_config.flat_threshold_deg,
        )
        for marker in smoothed.markers
    ]
    return average_tilt(tilts, flat_threshold_deg=marker_config.flat_threshold_deg)


def _first_marker_pose(smoothed: SmoothedDetection, config: AlignmentConfig) -> Optional[MarkerPose]:
    if not smoothed.markers:
        return None
    image_size = config.image.size
    return estimate_pose(
        to_pixel_corners(smoothed.markers[0], image_size),
        image_size,
        marker_size_m=config.marker.pose_size_m,
    )


def reduce_alignment(
    pair: PairMeasurement,
    smoothed: SmoothedDetection,
    viewing_angle_good: bool,
    previous: Optional[AlignmentState],
    config: AlignmentConfig,
) -> AlignmentState:
    """Build the next alignment snapshot.

    Args:
        pair: Pair analysis of the smoothed markers
        smoothed: Output of the temporal smoother for this frame
        viewing_angle_good: Device pitch within range (True if unknown)
        previous: Last published state, used to carry ``feedback_since_s``
        config: Alignment configuration

    Returns:
        New immutable AlignmentState
    """
    detected = smoothed.detected and pair.found
    distance_class = pair.distance_class if detected else None
    orientation_valid = pair.orientation_valid if detected else False

    feedback = select_feedback(detected, distance_class, orientation_valid, viewing_angle_good)
    message, hint = FEEDBACK_TEXT[feedback]

    if previous is not None and previous.feedback == feedback:
        feedback_since = previous.feedback_since_s
    else:
        feedback_since = smoothed.timestamp_s

    # Any visible marker still anchors centering guidance while searching
    center = markers_centroid(smoothed.markers)
    if center is None:
        center = (0.5, 0.5)

    return AlignmentState(
        both_markers_detected=detected,
        # Markers carry no payload, so any geometric pair matches the template
        markers_match_template=detected,
        distance_class=distance_class,
        orientation_valid=orientation_valid,
        viewing_angle_good=viewing_angle_good,
        marker_corners=smoothed.markers if detected else (),
        pixel_distance=pair.pixel_distance if detected and pair.pixel_distance is not None else 0.0,
        angle_deg=pair.angle_deg if detected and pair.angle_deg is not None else 0.0,
        distance_cm=smoothed.distance_cm if detected else None,
        roll_deg=smoothed.roll_deg if detected else 0.0,
        center=center,
        plane_tilt=_plane_tilt(smoothed, config) if detected else None,
        pose=_first_marker_pose(smoothed, config) if detected else None,
        is_roll_good=is_roll_good(smoothed.roll_deg, config.guidance) if detected else True,
        is_centered=is_centered(center, config.guidance) if detected else True,
        feedback=feedback,
        message=message,
        hint=hint,
        feedback_since_s=feedback_since,
        timestamp_s=smoothed.timestamp_s,
    )
