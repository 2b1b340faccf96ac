"""Custom exception classes for stackalign."""

from __future__ import annotations

from typing import Optional


class StackAlignError(Exception):
    """Base exception for all stackalign errors."""

    pass


class ConfigError(StackAlignError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class SessionError(StackAlignError):
    """Raised when an alignment session is used outside its lifecycle."""

    pass
