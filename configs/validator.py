"""Configuration validation using JSON Schema."""

from __future__ import annotations

from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

_RANGE = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 2,
    "maxItems": 2,
}

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "image": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "width": {"type": "integer", "minimum": 320, "maximum": 7680},
                "height": {"type": "integer", "minimum": 240, "maximum": 4320},
                "fps": {"type": "integer", "minimum": 1, "maximum": 240},
            },
        },
        "marker": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "size_cm": {"type": "number", "exclusiveMinimum": 0, "maximum": 100},
                "focal_length_px": {"type": "number", "minimum": 100, "maximum": 10000},
                "tilt_gain": {"type": "number", "exclusiveMinimum": 0, "maximum": 20},
                "tilt_ratio_range": _RANGE,
                "flat_threshold_deg": {"type": "number", "minimum": 0, "maximum": 90},
                "pose_size_m": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
            },
        },
        "pair": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "target_pixel_distance": {"type": "number", "exclusiveMinimum": 0},
                "distance_tolerance": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                "left_diagonal_deg": {"type": "number", "minimum": -180, "maximum": 180},
                "right_diagonal_deg": {"type": "number", "minimum": -180, "maximum": 180},
                "max_angle_deviation_deg": {"type": "number", "minimum": 0, "maximum": 90},
            },
        },
        "smoothing": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "window_s": {"type": "number", "exclusiveMinimum": 0, "maximum": 10},
                "detection_threshold": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                "min_markers": {"type": "integer", "minimum": 1, "maximum": 10},
            },
        },
        "viewing_angle": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "strictness": {"type": "string", "enum": ["strict", "lenient"]},
                "min_deg": {"type": ["number", "null"], "minimum": -90, "maximum": 90},
                "max_deg": {"type": ["number", "null"], "minimum": -90, "maximum": 90},
                "stale_after_s": {"type": ["number", "null"], "exclusiveMinimum": 0},
            },
        },
        "guidance": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "roll_tolerance_deg": {"type": "number", "minimum": 0, "maximum": 90},
                "horizontal_center_tolerance": {"type": "number", "minimum": 0, "maximum": 0.5},
                "vertical_center_tolerance": {"type": "number", "minimum": 0, "maximum": 0.5},
                "ideal_vertical_center": {"type": "number", "minimum": 0, "maximum": 1},
            },
        },
        "movement": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "lost_frames_warning": {"type": "integer", "minimum": 0, "maximum": 300},
                "recent_samples": {"type": "integer", "minimum": 2, "maximum": 30},
                "drift_threshold": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
                "too_much_multiplier": {"type": "number", "minimum": 1},
                "excessive_threshold": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
                "lost_ratio_threshold": {"type": "number", "minimum": 0, "maximum": 1},
                "warning_min_display_s": {"type": "number", "minimum": 0, "maximum": 30},
                "history_window_s": {"type": "number", "exclusiveMinimum": 0, "maximum": 60},
                "min_markers": {"type": "integer", "minimum": 1, "maximum": 10},
            },
        },
        "recording": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "soft_block_when_not_ready": {"type": "boolean"},
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if not isinstance(instance, dict):
            yield from validate_properties(validator, properties, instance, schema)
            return
        for prop, subschema in properties.items():
            if "default" in subschema:
                instance.setdefault(prop, subschema["default"])

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema.

    Missing sections are filled in with empty mappings so that dataclass
    defaults apply.

    Args:
        config: Configuration dictionary (modified in place)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
