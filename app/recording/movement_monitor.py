"""Camera movement tracking while a recording is in progress.

Keeps its own sample history and counters, separate from the
pre-recording smoother, and produces a quality verdict when the recording
stops. Coordinates are normalized (bottom-left origin, Y up).
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, List, Optional, Sequence

from configs.settings import MovementConfig
from contracts import DetectedMarker, MovementSample, MovementWarning, Point, RecordingQuality
from detect.geometry import markers_centroid
from log_config.logger import get_logger

logger = get_logger(__name__)


class MovementMonitor:
    """Per-frame drift/loss warnings and the post-recording verdict.

    Warnings are debounced: once raised, a warning stays visible for at
    least ``warning_min_display_s`` even if the camera settles. Not
    thread-safe; the owning session serializes calls.
    """

    def __init__(self, config: MovementConfig) -> None:
        self._config = config
        self._samples: Deque[MovementSample] = deque()
        self._active = False
        self._start_s = 0.0
        self._total_frames = 0
        self._lost_frames = 0
        self._consecutive_lost = 0
        self._movement_sum = 0.0
        self._movement_count = 0
        self._last_centroid: Optional[Point] = None
        self._warning: Optional[MovementWarning] = None
        self._warning_since_s: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def warning(self) -> Optional[MovementWarning]:
        return self._warning

    @property
    def samples(self) -> tuple[MovementSample, ...]:
        return tuple(self._samples)

    def reset(self) -> None:
        self._samples.clear()
        self._active = False
        self._start_s = 0.0
        self._total_frames = 0
        self._lost_frames = 0
        self._consecutive_lost = 0
        self._movement_sum = 0.0
        self._movement_count = 0
        self._last_centroid = None
        self._warning = None
        self._warning_since_s = None

    def start(self, timestamp_s: float) -> None:
        self.reset()
        self._active = True
        self._start_s = timestamp_s

    def _raise(self, warning: MovementWarning, timestamp_s: float) -> None:
        if warning != self._warning:
            logger.debug(f"Movement warning: {warning.value}")
        self._warning = warning
        self._warning_since_s = timestamp_s

    def _settle(self, timestamp_s: float) -> None:
        if self._warning is None:
            return
        if self._warning_since_s is None or timestamp_s - self._warning_since_s >= self._config.warning_min_display_s:
            logger.debug(f"Movement warning cleared: {self._warning.value}")
            self._warning = None
            self._warning_since_s = None

    def _recent_average(self) -> Optional[Point]:
        recent = list(self._samples)[-self._config.recent_samples:]
        if len(recent) < 2:
            return None
        return (
            sum(s.centroid[0] for s in recent) / len(recent),
            sum(s.centroid[1] for s in recent) / len(recent),
        )

    def frame(self, timestamp_s: float, markers: Sequence[DetectedMarker]) -> Optional[MovementWarning]:
        """Fold one recording frame in and return the warning to display."""
        if not self._active:
            return None
        self._total_frames += 1

        if len(markers) < self._config.min_markers:
            self._lost_frames += 1
            self._consecutive_lost += 1
            if self._consecutive_lost > self._config.lost_frames_warning:
                self._raise(MovementWarning.MARKER_LOST, timestamp_s)
            return self._warning

        self._consecutive_lost = 0
        center = markers_centroid(markers)
        if center is None:
            return self._warning

        reference = self._recent_average()
        if reference is not None:
            delta = math.hypot(center[0] - reference[0], center[1] - reference[1])
            threshold = self._config.drift_threshold
            if delta > threshold * self._config.too_much_multiplier:
                self._raise(MovementWarning.TOO_MUCH_MOVEMENT, timestamp_s)
            elif delta > threshold:
                self._raise(MovementWarning.DRIFTING, timestamp_s)
            else:
                self._settle(timestamp_s)
        else:
            self._settle(timestamp_s)

        if self._last_centroid is not None:
            self._movement_sum += math.hypot(
                center[0] - self._last_centroid[0], center[1] - self._last_centroid[1]
            )
            self._movement_count += 1
        self._last_centroid = center

        self._samples.append(MovementSample(timestamp_s=timestamp_s, centroid=center))
        cutoff = timestamp_s - self._config.history_window_s
        while self._samples and self._samples[0].timestamp_s < cutoff:
            self._samples.popleft()
        return self._warning

    def stop(self, timestamp_s: float, elapsed_s: Optional[float] = None) -> RecordingQuality:
        """Finish the recording and compute the quality verdict.

        Args:
            timestamp_s: Stop time (monotonic seconds)
            elapsed_s: Duration reported by the capture pipeline, if known

        Returns:
            RecordingQuality; history and counters are cleared afterwards
        """
        total = self._total_frames
        lost_ratio = self._lost_frames / total if total else 0.0
        avg_movement = self._movement_sum / self._movement_count if self._movement_count else 0.0
        duration = elapsed_s if elapsed_s is not None else max(0.0, timestamp_s - self._start_s)

        reasons: List[str] = []
        if lost_ratio > self._config.lost_ratio_threshold:
            reasons.append(f"markers lost in {lost_ratio:.0%} of frames")
        if avg_movement > self._config.excessive_threshold:
            reasons.append(
                f"average movement {avg_movement:.4f} above {self._config.excessive_threshold:.4f}"
            )

        quality = RecordingQuality(
            total_frames=total,
            lost_frames=self._lost_frames,
            lost_ratio=lost_ratio,
            avg_movement=avg_movement,
            duration_s=duration,
            had_excessive_movement=bool(reasons),
            reasons=tuple(reasons),
        )
        if quality.had_excessive_movement:
            logger.warning(f"Recording quality poor, retake recommended: {'; '.join(reasons)}")
        else:
            logger.info(
                f"Recording quality ok: {total} frames, lost={lost_ratio:.1%}, "
                f"avg movement={avg_movement:.4f}"
            )
        self.reset()
        return quality
