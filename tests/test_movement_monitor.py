"""Tests for recording-time movement warnings and the quality verdict."""

import pytest

from app.recording.movement_monitor import MovementMonitor
from configs.settings import MovementConfig
from contracts import MovementWarning

from conftest import square_marker

FRAME_S = 1.0 / 30.0


def pair_at(x: float, y: float = 0.33):
    return [square_marker(x - 0.1, y - 0.1), square_marker(x + 0.1, y + 0.1)]


@pytest.fixture
def monitor():
    m = MovementMonitor(MovementConfig())
    m.start(0.0)
    return m


def test_inactive_monitor_ignores_frames() -> None:
    m = MovementMonitor(MovementConfig())

    assert m.frame(0.0, []) is None
    assert not m.active


def test_steady_recording_is_good(monitor) -> None:
    for i in range(100):
        assert monitor.frame(i * FRAME_S, pair_at(0.5)) is None

    quality = monitor.stop(100 * FRAME_S)

    assert quality.total_frames == 100
    assert quality.lost_frames == 0
    assert quality.avg_movement == pytest.approx(0.0)
    assert not quality.had_excessive_movement
    assert quality.reasons == ()


def test_shaky_recording_is_excessive(monitor) -> None:
    for i in range(100):
        x = 0.5 if i % 2 == 0 else 0.55
        monitor.frame(i * FRAME_S, pair_at(x))

    quality = monitor.stop(100 * FRAME_S)

    assert quality.avg_movement == pytest.approx(0.05)
    assert quality.had_excessive_movement
    assert any("movement" in reason for reason in quality.reasons)


def test_marker_lost_after_consecutive_misses(monitor) -> None:
    monitor.frame(0.0, pair_at(0.5))
    warnings = [monitor.frame((i + 1) * FRAME_S, []) for i in range(6)]

    assert warnings[:5] == [None] * 5
    assert warnings[5] == MovementWarning.MARKER_LOST


def test_single_marker_counts_as_lost(monitor) -> None:
    for i in range(10):
        monitor.frame(i * FRAME_S, pair_at(0.5)[:1] if i < 3 else pair_at(0.5))

    quality = monitor.stop(1.0)

    assert quality.lost_frames == 3
    assert quality.lost_ratio == pytest.approx(0.3)
    assert quality.had_excessive_movement
    assert any("lost" in reason for reason in quality.reasons)


def test_lost_ratio_counts_every_lost_frame(monitor) -> None:
    # Short dropouts never reach the warning, but all of them count in the verdict
    t = 0.0
    for _ in range(5):
        for _ in range(4):
            monitor.frame(t, pair_at(0.5))
            t += FRAME_S
        for _ in range(2):
            monitor.frame(t, [])
            t += FRAME_S

    quality = monitor.stop(t)

    assert quality.total_frames == 30
    assert quality.lost_frames == 10
    assert quality.had_excessive_movement


def test_drift_and_too_much_movement(monitor) -> None:
    for i in range(3):
        monitor.frame(i * FRAME_S, pair_at(0.5))
    assert monitor.frame(3 * FRAME_S, pair_at(0.515)) == MovementWarning.DRIFTING

    m = MovementMonitor(MovementConfig())
    m.start(0.0)
    for i in range(3):
        m.frame(i * FRAME_S, pair_at(0.5))
    assert m.frame(3 * FRAME_S, pair_at(0.55)) == MovementWarning.TOO_MUCH_MOVEMENT


def test_warning_persists_for_minimum_display(monitor) -> None:
    for i in range(3):
        monitor.frame(i * FRAME_S, pair_at(0.5))
    monitor.frame(3 * FRAME_S, pair_at(0.55))
    for i in range(4, 14):
        monitor.frame(i * FRAME_S, pair_at(0.55))

    assert monitor.warning is not None

    assert monitor.frame(2.0, pair_at(0.55)) is None
    assert monitor.warning is None


def test_history_window_is_pruned(monitor) -> None:
    for i in range(120):
        monitor.frame(i * FRAME_S, pair_at(0.5))

    samples = monitor.samples
    assert samples[-1].timestamp_s - samples[0].timestamp_s <= 2.0 + 1e-9


def test_stop_prefers_reported_duration(monitor) -> None:
    monitor.frame(0.0, pair_at(0.5))
    quality = monitor.stop(5.0, elapsed_s=4.2)

    assert quality.duration_s == 4.2
    assert not monitor.active
    assert monitor.warning is None
