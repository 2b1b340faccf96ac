"""Temporal smoothing of marker detection over a short time window."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional, Sequence

from configs.settings import MarkerConfig, SmoothingConfig
from contracts import DetectedMarker, DetectionHistoryEntry, ImageSize, SmoothedDetection
from detect.geometry import distance_estimate_cm, in_plane_roll, to_pixel_corners
from log_config.logger import get_logger

logger = get_logger(__name__)


class TemporalSmoother:
    """Majority vote over the detections of the last ``window_s`` seconds.

    A frame counts as detected when it has at least ``min_markers``
    markers. The smoothed state is detected when the detected fraction of
    the window reaches ``detection_threshold``, so a single missed frame
    (motion blur) does not flip the operator feedback while a sustained
    absence does. During such a gap the geometry of the most recent
    detected frame in the window is reused.

    Not thread-safe; the owning session serializes frames.
    """

    def __init__(self, config: SmoothingConfig, marker_config: MarkerConfig, image_size: ImageSize) -> None:
        self._config = config
        self._marker_config = marker_config
        self._image_size = image_size
        self._history: Deque[DetectionHistoryEntry] = deque()

    def reset(self) -> None:
        self._history.clear()

    @property
    def history(self) -> tuple[DetectionHistoryEntry, ...]:
        return tuple(self._history)

    def _measure(self, markers: Sequence[DetectedMarker]) -> tuple[Optional[float], float]:
        if not markers:
            return None, 0.0
        pixel_corners = to_pixel_corners(markers[0], self._image_size)
        distance = distance_estimate_cm(
            pixel_corners, self._marker_config.size_cm, self._marker_config.focal_length_px
        )
        return distance, in_plane_roll(pixel_corners)

    def update(self, timestamp_s: float, markers: Sequence[DetectedMarker]) -> SmoothedDetection:
        """Fold one frame into the window.

        Args:
            timestamp_s: Frame time in seconds (monotonic)
            markers: Sanitized markers of this frame, detector order

        Returns:
            Smoothed detection state for this frame
        """
        current_detected = len(markers) >= self._config.min_markers
        distance, roll = self._measure(markers)
        self._history.append(
            DetectionHistoryEntry(
                timestamp_s=timestamp_s,
                was_detected=current_detected,
                markers=tuple(markers),
                distance_cm=distance,
                roll_deg=roll,
            )
        )

        cutoff = timestamp_s - self._config.window_s
        while self._history and self._history[0].timestamp_s < cutoff:
            self._history.popleft()

        total = len(self._history)
        detected_count = sum(1 for entry in self._history if entry.was_detected)
        ratio = detected_count / total if total else 0.0
        smoothed = ratio >= self._config.detection_threshold

        out_markers = tuple(markers)
        reused = False
        if smoothed and not current_detected:
            last = next((e for e in reversed(self._history) if e.was_detected), None)
            if last is not None:
                out_markers = last.markers
                distance = last.distance_cm
                roll = last.roll_deg
                reused = True
                logger.debug(
                    f"Bridging detection gap with frame from {timestamp_s - last.timestamp_s:.3f}s ago "
                    f"(ratio {ratio:.2f})"
                )

        return SmoothedDetection(
            timestamp_s=timestamp_s,
            detected=smoothed,
            current_detected=current_detected,
            markers=out_markers,
            distance_cm=distance,
            roll_deg=roll,
            detection_ratio=ratio,
            window_count=total,
            reused_last_detection=reused,
        )
