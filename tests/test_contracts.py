import dataclasses

import pytest

from contracts import (
    AlignmentState,
    DetectedMarker,
    DistanceClass,
    FeedbackCode,
    MovementWarning,
    PairMeasurement,
    TemplateVariant,
)
from contracts.versioning import SCHEMA_VERSION, make_envelope


def test_detected_marker_centroid() -> None:
    marker = DetectedMarker(corners=((0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)))
    assert marker.centroid() == (0.5, 0.5)


def test_alignment_state_is_immutable() -> None:
    state = AlignmentState()

    with pytest.raises(dataclasses.FrozenInstanceError):
        state.feedback = FeedbackCode.READY  # type: ignore[misc]


def test_ready_is_and_of_all_gates() -> None:
    ready = AlignmentState(
        both_markers_detected=True,
        markers_match_template=True,
        distance_class=DistanceClass.OPTIMAL,
        orientation_valid=True,
        viewing_angle_good=True,
    )
    assert ready.is_ready_to_record

    for change in (
        {"both_markers_detected": False},
        {"markers_match_template": False},
        {"distance_class": DistanceClass.TOO_FAR},
        {"orientation_valid": False},
        {"viewing_angle_good": False},
    ):
        assert not dataclasses.replace(ready, **change).is_ready_to_record


def test_template_variant_filenames() -> None:
    assert TemplateVariant.LEFT_HAND.template_filename == "left-template"
    assert TemplateVariant.RIGHT_HAND.template_filename == "right-template"


def test_movement_warning_messages() -> None:
    assert all(warning.message for warning in MovementWarning)
    assert "steady" in MovementWarning.TOO_MUCH_MOVEMENT.message


def test_pair_not_found() -> None:
    result = PairMeasurement.not_found()
    assert not result.found and result.pixel_distance is None


def test_envelope() -> None:
    envelope = make_envelope({"a": 1})
    assert envelope["schema_version"] == SCHEMA_VERSION
    assert envelope["payload"] == {"a": 1}
