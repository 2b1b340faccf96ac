"""Configuration loading for marker alignment.

Every tolerance, window and threshold used by the alignment engine lives
here. Components receive the section they need instead of hard-coding
numbers, so tests can build deterministic fixtures with ``replace()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from configs.validator import validate_config
from contracts import ImageSize
from exceptions import InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")

# Acceptable device pitch (degrees looking down) per strictness level
VIEWING_ANGLE_PRESETS = {
    "strict": (40.0, 50.0),
    "lenient": (5.0, 60.0),
}


@dataclass(frozen=True)
class ImageConfig:
    width: int = 1920
    height: int = 1080
    fps: int = 30

    @property
    def size(self) -> ImageSize:
        return ImageSize(self.width, self.height)


@dataclass(frozen=True)
class MarkerConfig:
    size_cm: float = 6.0  # Printed marker edge length
    focal_length_px: float = 1600.0  # Approximate for a phone wide camera at 1920x1080
    tilt_gain: float = 2.0  # k in atan((ratio - 1) * k)
    tilt_ratio_range: Tuple[float, float] = (0.5, 2.0)
    flat_threshold_deg: float = 30.0
    pose_size_m: float = 0.05


@dataclass(frozen=True)
class PairConfig:
    target_pixel_distance: float = 500.0  # Marker spacing at the optimal range, 1080p
    distance_tolerance: float = 0.25
    left_diagonal_deg: float = -45.0
    right_diagonal_deg: float = 45.0
    max_angle_deviation_deg: float = 40.0

    @property
    def min_pixel_distance(self) -> float:
        return self.target_pixel_distance * (1.0 - self.distance_tolerance)

    @property
    def max_pixel_distance(self) -> float:
        return self.target_pixel_distance * (1.0 + self.distance_tolerance)


@dataclass(frozen=True)
class SmoothingConfig:
    window_s: float = 0.5
    detection_threshold: float = 0.5
    min_markers: int = 2


@dataclass(frozen=True)
class ViewingAngleConfig:
    strictness: str = "strict"
    min_deg: Optional[float] = None
    max_deg: Optional[float] = None
    stale_after_s: Optional[float] = 1.0

    @property
    def range_deg(self) -> Tuple[float, float]:
        preset_min, preset_max = VIEWING_ANGLE_PRESETS[self.strictness]
        low = preset_min if self.min_deg is None else self.min_deg
        high = preset_max if self.max_deg is None else self.max_deg
        return (low, high)


@dataclass(frozen=True)
class GuidanceConfig:
    roll_tolerance_deg: float = 5.0
    horizontal_center_tolerance: float = 0.08
    vertical_center_tolerance: float = 0.15
    ideal_vertical_center: float = 0.33  # Markers sit in the bottom two thirds of the frame


@dataclass(frozen=True)
class MovementConfig:
    lost_frames_warning: int = 5
    recent_samples: int = 3
    drift_threshold: float = 0.012  # Normalized units per frame
    too_much_multiplier: float = 2.0
    excessive_threshold: float = 0.008
    lost_ratio_threshold: float = 0.15
    warning_min_display_s: float = 1.5
    history_window_s: float = 2.0
    min_markers: int = 2


@dataclass(frozen=True)
class RecordingConfig:
    soft_block_when_not_ready: bool = False


@dataclass(frozen=True)
class AlignmentConfig:
    image: ImageConfig = field(default_factory=ImageConfig)
    marker: MarkerConfig = field(default_factory=MarkerConfig)
    pair: PairConfig = field(default_factory=PairConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    viewing_angle: ViewingAngleConfig = field(default_factory=ViewingAngleConfig)
    guidance: GuidanceConfig = field(default_factory=GuidanceConfig)
    movement: MovementConfig = field(default_factory=MovementConfig)
    recording: RecordingConfig = field(default_factory=RecordingConfig)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AlignmentConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Validated AlignmentConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path)
    try:
        logger.info(f"Loading configuration from {path}")
        if not path.exists():
            raise InvalidConfigError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

        # Validate against JSON Schema (fills in missing sections)
        validate_config(data)

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")
    except (TypeError, ValueError, OSError) as e:
        logger.error(f"Unreadable configuration file: {e}")
        raise InvalidConfigError(f"Failed to read configuration file: {e}")

    try:
        marker_data = dict(data["marker"])
        if "tilt_ratio_range" in marker_data:
            marker_data["tilt_ratio_range"] = tuple(marker_data["tilt_ratio_range"])

        config = AlignmentConfig(
            image=ImageConfig(**data["image"]),
            marker=MarkerConfig(**marker_data),
            pair=PairConfig(**data["pair"]),
            smoothing=SmoothingConfig(**data["smoothing"]),
            viewing_angle=ViewingAngleConfig(**data["viewing_angle"]),
            guidance=GuidanceConfig(**data["guidance"]),
            movement=MovementConfig(**data["movement"]),
            recording=RecordingConfig(**data["recording"]),
        )
    except (TypeError, ValueError, KeyError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    low, high = config.viewing_angle.range_deg
    if low > high:
        raise InvalidConfigError(f"Viewing angle range is empty: {low} > {high}")
    ratio_min, ratio_max = config.marker.tilt_ratio_range
    if ratio_min <= 0 or ratio_min > ratio_max:
        raise InvalidConfigError(f"Invalid tilt ratio range: {config.marker.tilt_ratio_range}")

    logger.info(
        f"Configuration loaded: {config.image.width}x{config.image.height}@{config.image.fps}fps, "
        f"target spacing {config.pair.target_pixel_distance:.0f}px "
        f"(±{config.pair.distance_tolerance:.0%})"
    )
    return config


def default_config() -> AlignmentConfig:
    """Built-in defaults, identical to configs/default.yaml."""
    return AlignmentConfig()
