import math

from contracts import DetectedMarker
from detect.filters import is_finite_marker, sanitize_markers

GOOD = ((0.1, 0.2), (0.2, 0.2), (0.2, 0.1), (0.1, 0.1))


def test_sanitize_accepts_markers_and_point_lists() -> None:
    markers = sanitize_markers([DetectedMarker(corners=GOOD), [list(p) for p in GOOD]])

    assert len(markers) == 2
    assert all(isinstance(m, DetectedMarker) for m in markers)
    assert markers[1].corners == GOOD


def test_sanitize_drops_non_finite_and_malformed() -> None:
    nan_marker = ((math.nan, 0.2), (0.2, 0.2), (0.2, 0.1), (0.1, 0.1))
    inf_marker = ((0.1, 0.2), (math.inf, 0.2), (0.2, 0.1), (0.1, 0.1))
    three_corners = GOOD[:3]

    markers = sanitize_markers([nan_marker, GOOD, inf_marker, three_corners, "junk", None])

    assert [m.corners for m in markers] == [GOOD]


def test_sanitize_keeps_detector_order() -> None:
    other = tuple((x + 0.5, y + 0.5) for x, y in GOOD)
    markers = sanitize_markers([other, GOOD])

    assert markers[0].corners == other
    assert markers[1].corners == GOOD


def test_sanitize_none_is_empty() -> None:
    assert sanitize_markers(None) == []
    assert not is_finite_marker([(0.0, 0.0)])
    assert is_finite_marker(GOOD)


def test_sanitize_drops_out_of_frame_coordinates() -> None:
    huge = ((1e306, 0.2), (0.2, 0.2), (0.2, 0.1), (0.1, 0.1))
    negative = ((0.1, -3.0), (0.2, 0.2), (0.2, 0.1), (0.1, 0.1))
    slightly_off = ((-0.05, 1.02), (0.2, 1.02), (0.2, 0.9), (-0.05, 0.9))

    markers = sanitize_markers([huge, negative, slightly_off])

    assert [m.corners for m in markers] == [slightly_off]
