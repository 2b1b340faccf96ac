"""Recording-time monitoring."""

from app.recording.movement_monitor import MovementMonitor

__all__ = ["MovementMonitor"]
