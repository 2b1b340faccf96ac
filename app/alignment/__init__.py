"""Alignment feedback: reducer and operator guidance."""

from app.alignment.guidance import (
    CenteringDirection,
    centering_direction,
    is_centered,
    is_roll_good,
    roll_hint,
    viewing_angle_hint,
)
from app.alignment.reducer import FEEDBACK_TEXT, reduce_alignment, select_feedback

__all__ = [
    "CenteringDirection",
    "FEEDBACK_TEXT",
    "centering_direction",
    "is_centered",
    "is_roll_good",
    "reduce_alignment",
    "roll_hint",
    "select_feedback",
    "viewing_angle_hint",
]
