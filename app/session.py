"""Alignment session: one operator, one template variant, one camera.

The session owns every piece of rolling state (smoothing history,
movement counters, orientation reading, last published snapshot) so that
several sessions can run side by side without sharing anything.

Frames may arrive on a detector worker thread while presentation reads
``state`` from another thread. Frame processing is serialized under a
lock and the snapshot is replaced by a single reference swap of an
immutable ``AlignmentState``.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterable, Optional

from app.alignment.reducer import reduce_alignment
from app.events.event_bus import EventBus
from app.events.event_types import (
    AlignmentUpdatedEvent,
    MovementWarningChangedEvent,
    RecordingFinishedEvent,
    RecordingStartedEvent,
)
from app.recording.movement_monitor import MovementMonitor
from capture.orientation import DeviceOrientation, ViewingAngleGate
from configs.settings import AlignmentConfig
from contracts import AlignmentState, MovementWarning, RecordingQuality, TemplateVariant
from detect.filters import sanitize_markers
from detect.pair import analyze_pair
from exceptions import SessionError
from log_config.logger import get_logger, log_performance
from track.smoother import TemporalSmoother

logger = get_logger(__name__)

FRAME_BUDGET_MS = 5.0


class AlignmentSession:
    """Per-frame alignment feedback before recording, movement tracking during it.

    Before recording, frames flow through the smoother, the pair analyzer
    and the reducer. While recording, frames go only to the movement
    monitor; the two paths never share history.
    """

    def __init__(
        self,
        config: AlignmentConfig,
        variant: TemplateVariant,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._variant = variant
        self._bus = bus
        self._clock = clock
        self._lock = threading.RLock()

        self._image_size = config.image.size
        self._smoother = TemporalSmoother(config.smoothing, config.marker, self._image_size)
        self._monitor = MovementMonitor(config.movement)
        self._orientation = ViewingAngleGate(config.viewing_angle)

        self._started = False
        self._recording = False
        self._recording_start_s = 0.0
        self._state = AlignmentState()

    @property
    def config(self) -> AlignmentConfig:
        return self._config

    @property
    def variant(self) -> TemplateVariant:
        return self._variant

    @property
    def state(self) -> AlignmentState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def movement_warning(self) -> Optional[MovementWarning]:
        with self._lock:
            return self._monitor.warning if self._recording else None

    @property
    def orientation(self) -> ViewingAngleGate:
        return self._orientation

    def _now(self, timestamp_s: Optional[float]) -> float:
        return self._clock() if timestamp_s is None else timestamp_s

    def _publish(self, event: Any) -> None:
        if self._bus is not None:
            self._bus.publish(event)

    def _clear(self) -> None:
        self._smoother.reset()
        self._monitor.reset()
        self._orientation.reset()
        self._recording = False
        self._recording_start_s = 0.0
        self._state = AlignmentState()

    def start(self) -> None:
        """Begin a session with empty history."""
        with self._lock:
            self._clear()
            self._started = True
        logger.info(f"Alignment session started ({self._variant.template_filename}, "
                    f"{self._image_size.width}x{self._image_size.height})")

    def reset(self) -> None:
        """Drop all rolling state, including an in-progress recording."""
        with self._lock:
            was_recording = self._recording
            self._clear()
        if was_recording:
            logger.warning("Session reset while recording; movement data discarded")
        logger.debug("Alignment session reset")

    def update_device_pitch(self, pitch_deg: float, timestamp_s: Optional[float] = None) -> None:
        self._orientation.update_pitch(pitch_deg, self._now(timestamp_s))

    def update_gravity(self, gx: float, gy: float, gz: float, timestamp_s: Optional[float] = None) -> None:
        self._orientation.update(DeviceOrientation.from_gravity(gx, gy, gz, self._now(timestamp_s)))

    def frame(self, raw_markers: Optional[Iterable[Any]], timestamp_s: Optional[float] = None) -> AlignmentState:
        """Process one detector result.

        Args:
            raw_markers: Detector output for the frame (markers or 4-point sequences)
            timestamp_s: Frame time; defaults to the session clock

        Returns:
            The alignment snapshot after this frame. While recording this
            is the last pre-recording snapshot, unchanged.

        Raises:
            SessionError: If the session was never started
        """
        if not self._started:
            raise SessionError("frame() called before start()")

        start = time.perf_counter()
        now = self._now(timestamp_s)
        markers = sanitize_markers(raw_markers)
        events: list[Any] = []

        with self._lock:
            if self._recording:
                previous_warning = self._monitor.warning
                warning = self._monitor.frame(now, markers)
                if warning != previous_warning:
                    events.append(MovementWarningChangedEvent(warning=warning, timestamp_s=now))
                state = self._state
            else:
                smoothed = self._smoother.update(now, markers)
                pair = analyze_pair(smoothed.markers, self._image_size, self._variant, self._config.pair)
                previous = self._state
                state = reduce_alignment(
                    pair,
                    smoothed,
                    self._orientation.is_good(now),
                    previous,
                    self._config,
                )
                self._state = state
                if state.feedback != previous.feedback:
                    logger.info(f"Alignment feedback: {previous.feedback.value} -> {state.feedback.value} "
                                f"({state.message})")
                events.append(AlignmentUpdatedEvent(state=state, previous_feedback=previous.feedback))

        for event in events:
            self._publish(event)

        log_performance("alignment_frame", (time.perf_counter() - start) * 1000.0, FRAME_BUDGET_MS)
        return state

    def start_recording(self, timestamp_s: Optional[float] = None, force: bool = False) -> bool:
        """Switch to movement tracking.

        Recording is permitted when alignment is not ready unless the soft
        block is enabled in configuration, in which case ``force`` overrides it.

        Returns:
            True if recording started, False if refused or already recording
        """
        if not self._started:
            raise SessionError("start_recording() called before start()")

        now = self._now(timestamp_s)
        with self._lock:
            if self._recording:
                logger.warning("start_recording() ignored: already recording")
                return False
            ready = self._state.is_ready_to_record
            if not ready and self._config.recording.soft_block_when_not_ready and not force:
                logger.info(f"Recording blocked, alignment not ready: {self._state.message}")
                return False
            self._monitor.start(now)
            self._recording = True
            self._recording_start_s = now

        if not ready:
            logger.warning(f"Recording started while not ready ({self._state.feedback.value})")
        else:
            logger.info("Recording started")
        self._publish(RecordingStartedEvent(variant=self._variant, timestamp_s=now, was_ready=ready))
        return True

    def stop_recording(self, timestamp_s: Optional[float] = None, elapsed_s: Optional[float] = None) -> RecordingQuality:
        """Stop movement tracking and return the quality verdict.

        Pre-recording smoothing starts over afterwards.

        Raises:
            SessionError: If no recording is in progress
        """
        now = self._now(timestamp_s)
        with self._lock:
            if not self._recording:
                raise SessionError("stop_recording() called with no recording in progress")
            quality = self._monitor.stop(now, elapsed_s)
            self._recording = False
            self._recording_start_s = 0.0
            self._smoother.reset()
            self._state = AlignmentState(feedback_since_s=now, timestamp_s=now)

        self._publish(RecordingFinishedEvent(variant=self._variant, timestamp_s=now, quality=quality))
        return quality

    def recording_elapsed_s(self, now: Optional[float] = None) -> float:
        with self._lock:
            if not self._recording:
                return 0.0
            return max(0.0, self._now(now) - self._recording_start_s)
