"""Event system for alignment session updates."""

from app.events.event_bus import EventBus
from app.events.event_types import (
    AlignmentUpdatedEvent,
    MovementWarningChangedEvent,
    RecordingFinishedEvent,
    RecordingStartedEvent,
)

__all__ = [
    "AlignmentUpdatedEvent",
    "EventBus",
    "MovementWarningChangedEvent",
    "RecordingFinishedEvent",
    "RecordingStartedEvent",
]
