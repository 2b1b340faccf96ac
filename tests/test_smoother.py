"""Tests for the majority-vote temporal smoother."""

import pytest

from configs.settings import MarkerConfig, SmoothingConfig
from contracts import ImageSize
from track.smoother import TemporalSmoother

FRAME_S = 1.0 / 30.0


@pytest.fixture
def smoother():
    return TemporalSmoother(SmoothingConfig(), MarkerConfig(), ImageSize(1920, 1080))


def feed(smoother, frames, start_s=0.0):
    """Feed a list of marker lists at 30fps, returning the last result."""
    result = None
    for i, markers in enumerate(frames):
        result = smoother.update(start_s + i * FRAME_S, markers)
    return result


def test_constant_detection_stays_detected(smoother, ready_pair) -> None:
    for i in range(60):
        result = smoother.update(i * FRAME_S, ready_pair)
        assert result.detected
    assert result.detection_ratio == pytest.approx(1.0)


def test_single_miss_does_not_flip(smoother, ready_pair) -> None:
    feed(smoother, [ready_pair] * 10)
    result = smoother.update(10 * FRAME_S, [])

    assert result.detected
    assert not result.current_detected
    assert result.reused_last_detection
    assert result.markers == tuple(ready_pair)
    assert result.distance_cm is not None


def test_sustained_absence_flips(smoother, ready_pair) -> None:
    feed(smoother, [ready_pair] * 15)
    result = feed(smoother, [[]] * 20, start_s=15 * FRAME_S)

    assert not result.detected
    assert result.markers == ()
    assert not result.reused_last_detection


def test_single_marker_never_counts(smoother, ready_pair) -> None:
    result = feed(smoother, [ready_pair[:1]] * 30)

    assert not result.detected
    assert not result.current_detected
    assert result.detection_ratio == 0.0


def test_window_prunes_old_entries(smoother, ready_pair) -> None:
    feed(smoother, [ready_pair] * 30)

    history = smoother.history
    assert history[-1].timestamp_s - history[0].timestamp_s <= 0.5 + 1e-9
    assert len(history) <= 16


def test_measures_first_marker(smoother, marker_factory) -> None:
    markers = [marker_factory(0.3, 0.3, size_px=100.0, roll_deg=4.0), marker_factory(0.6, 0.6, size_px=50.0)]
    result = smoother.update(0.0, markers)

    assert result.distance_cm == pytest.approx(96.0)
    assert result.roll_deg == pytest.approx(4.0, abs=1e-6)


def test_reset_clears_history(smoother, ready_pair) -> None:
    feed(smoother, [ready_pair] * 5)
    smoother.reset()

    assert smoother.history == ()
    assert not smoother.update(1.0, []).detected
