"""Event types published by the alignment session.

All events are immutable dataclasses that flow through the EventBus.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from contracts import AlignmentState, FeedbackCode, MovementWarning, RecordingQuality, TemplateVariant


@dataclass(frozen=True)
class AlignmentUpdatedEvent:
    """Published after every processed pre-recording frame.

    Frequency: once per frame (~30/sec)

    Attributes:
        state: New alignment snapshot, replacing the previous one
        previous_feedback: Feedback code of the snapshot it replaced
    """
    state: AlignmentState
    previous_feedback: Optional[FeedbackCode] = None

    @property
    def feedback_changed(self) -> bool:
        return self.previous_feedback != self.state.feedback


@dataclass(frozen=True)
class MovementWarningChangedEvent:
    """Published during recording when the displayed warning changes.

    Attributes:
        warning: Warning now shown, or None when cleared
        timestamp_s: Frame time of the change
    """
    warning: Optional[MovementWarning]
    timestamp_s: float


@dataclass(frozen=True)
class RecordingStartedEvent:
    """Published when a recording starts.

    Attributes:
        variant: Template variant of the session
        timestamp_s: Start time
        was_ready: Whether alignment was ready when recording began
    """
    variant: TemplateVariant
    timestamp_s: float
    was_ready: bool


@dataclass(frozen=True)
class RecordingFinishedEvent:
    """Published with the quality verdict when a recording stops."""
    variant: TemplateVariant
    timestamp_s: float
    quality: RecordingQuality
