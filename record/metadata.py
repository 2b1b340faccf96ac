"""Session metadata sidecar record.

Describes one recording for downstream ingestion. Only the record is built
here; writing the video and its JSON sidecar belongs to the storage layer.
"""

from __future__ import annotations

import json
import platform
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from configs.settings import AlignmentConfig
from contracts import RecordingQuality, TemplateVariant
from contracts.versioning import APP_VERSION, make_envelope


@dataclass(frozen=True)
class SessionMetadata:
    hand_used: str
    template_filename: str
    timestamp: str
    recording_duration_s: float
    device_model: str
    os_version: str
    app_version: str
    video_resolution: str
    frame_rate: int
    had_excessive_movement: Optional[bool] = None
    lost_ratio: Optional[float] = None
    avg_movement: Optional[float] = None

    @classmethod
    def create(
        cls,
        variant: TemplateVariant,
        duration_s: float,
        quality: Optional[RecordingQuality] = None,
        config: Optional[AlignmentConfig] = None,
        recorded_at: Optional[datetime] = None,
    ) -> "SessionMetadata":
        """Build metadata for a finished recording.

        Args:
            variant: Template variant (hand) used for the session
            duration_s: Recording duration in seconds
            quality: Verdict from the movement monitor, if available
            config: Session configuration (resolution and frame rate)
            recorded_at: Recording start time; defaults to now (UTC)
        """
        config = config or AlignmentConfig()
        recorded_at = recorded_at or datetime.now(timezone.utc)
        return cls(
            hand_used=variant.value,
            template_filename=variant.template_filename,
            timestamp=recorded_at.isoformat(timespec="milliseconds"),
            recording_duration_s=float(duration_s),
            device_model=platform.machine() or "Unknown",
            os_version=f"{platform.system()} {platform.release()}".strip() or "Unknown",
            app_version=APP_VERSION,
            video_resolution=f"{config.image.width}x{config.image.height}",
            frame_rate=config.image.fps,
            had_excessive_movement=quality.had_excessive_movement if quality else None,
            lost_ratio=quality.lost_ratio if quality else None,
            avg_movement=quality.avg_movement if quality else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return make_envelope(asdict(self))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    def video_filename(self) -> str:
        """coinstack_<YYYYmmdd_HHMMSS>_<hand>.mp4, stamped with the recording time."""
        recorded_at = datetime.fromisoformat(self.timestamp)
        return f"coinstack_{recorded_at.strftime('%Y%m%d_%H%M%S')}_{self.hand_used}.mp4"
