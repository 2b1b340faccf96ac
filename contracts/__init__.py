"""Shared data contracts for marker alignment."""

from .types import (
    AlignmentState,
    Corners,
    DetectedMarker,
    DetectionHistoryEntry,
    DistanceClass,
    EdgeLengths,
    FeedbackCode,
    ImageSize,
    MarkerPose,
    MovementSample,
    MovementWarning,
    PairMeasurement,
    Point,
    RecordingQuality,
    SmoothedDetection,
    TemplateVariant,
    TiltEstimate,
)

__all__ = [
    "AlignmentState",
    "Corners",
    "DetectedMarker",
    "DetectionHistoryEntry",
    "DistanceClass",
    "EdgeLengths",
    "FeedbackCode",
    "ImageSize",
    "MarkerPose",
    "MovementSample",
    "MovementWarning",
    "PairMeasurement",
    "Point",
    "RecordingQuality",
    "SmoothedDetection",
    "TemplateVariant",
    "TiltEstimate",
]
