"""Device orientation input and viewing-angle gating.

The orientation sensor is an external collaborator sampled at a low rate
(~10 Hz). This module only turns its readings into a pitch angle and a
good/bad viewing-angle flag; it never blocks waiting for a sample.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Optional

from configs.settings import ViewingAngleConfig
from log_config.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeviceOrientation:
    """One orientation sample.

    Attributes:
        pitch_deg: How far the device looks down; 0 = straight ahead,
            90 = straight down at the table (bird's eye)
        tilt_deg: Side-to-side tilt from gravity, degrees
        is_landscape: Device held sideways
        is_landscape_right: Landscape with the charging port on the right
        timestamp_s: Sample time (monotonic seconds)
    """

    pitch_deg: float
    tilt_deg: float = 0.0
    is_landscape: bool = True
    is_landscape_right: bool = True
    timestamp_s: float = 0.0

    @classmethod
    def from_gravity(cls, gx: float, gy: float, gz: float, timestamp_s: float = 0.0) -> "DeviceOrientation":
        """Build a sample from a unit gravity vector in device coordinates."""
        gz_clamped = max(-1.0, min(1.0, gz))
        is_landscape = abs(gx) > abs(gy)
        return cls(
            pitch_deg=math.degrees(math.asin(-gz_clamped)),
            tilt_deg=math.degrees(math.atan2(gy, abs(gx))),
            is_landscape=is_landscape,
            is_landscape_right=gx < 0,
            timestamp_s=timestamp_s,
        )


class ViewingAngleGate:
    """Holds the latest orientation sample and gates it against a pitch range.

    Missing or stale samples are treated as a good viewing angle so an
    unavailable sensor never blocks the operator.
    """

    def __init__(self, config: ViewingAngleConfig) -> None:
        self._config = config
        self._min_deg, self._max_deg = config.range_deg
        self._lock = threading.Lock()
        self._reading: Optional[DeviceOrientation] = None
        self._stale_logged = False

    @property
    def range_deg(self) -> tuple[float, float]:
        return (self._min_deg, self._max_deg)

    def reset(self) -> None:
        with self._lock:
            self._reading = None
            self._stale_logged = False

    def update(self, reading: DeviceOrientation) -> None:
        with self._lock:
            self._reading = reading
            self._stale_logged = False

    def update_pitch(self, pitch_deg: float, timestamp_s: float) -> None:
        if not math.isfinite(pitch_deg):
            logger.debug(f"Ignoring non-finite device pitch {pitch_deg}")
            return
        self.update(DeviceOrientation(pitch_deg=pitch_deg, timestamp_s=timestamp_s))

    def current(self, now_s: Optional[float] = None) -> Optional[DeviceOrientation]:
        """Latest reading, or None when absent or older than ``stale_after_s``."""
        with self._lock:
            reading = self._reading
            if reading is None:
                return None
            stale_after = self._config.stale_after_s
            if now_s is not None and stale_after is not None and now_s - reading.timestamp_s > stale_after:
                if not self._stale_logged:
                    logger.warning(
                        f"Orientation sample is {now_s - reading.timestamp_s:.1f}s old; "
                        "treating viewing angle as good"
                    )
                    self._stale_logged = True
                return None
            return reading

    def is_good(self, now_s: Optional[float] = None) -> bool:
        reading = self.current(now_s)
        if reading is None:
            return True
        return self._min_deg <= reading.pitch_deg <= self._max_deg
