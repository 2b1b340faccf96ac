"""Capture-side inputs: device orientation."""

from .orientation import DeviceOrientation, ViewingAngleGate

__all__ = ["DeviceOrientation", "ViewingAngleGate"]
