import math

import numpy as np
import pytest

from contracts import DetectedMarker, ImageSize
from detect.geometry import (
    average_tilt,
    centroid,
    distance_estimate_cm,
    edge_lengths,
    estimate_pose,
    in_plane_roll,
    markers_centroid,
    tilt_estimate,
    to_pixel_corners,
)

from conftest import pixel_square, square_marker


def rotate(corners, angle_deg, center=(550.0, 550.0)):
    c, s = math.cos(math.radians(angle_deg)), math.sin(math.radians(angle_deg))
    cx, cy = center
    out = []
    for x, y in corners:
        dx, dy = x - cx, y - cy
        out.append((cx + dx * c - dy * s, cy + dx * s + dy * c))
    return out


def test_to_pixel_corners_keeps_y_up() -> None:
    marker = DetectedMarker(corners=((0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)))
    pts = to_pixel_corners(marker, ImageSize(1920, 1080))

    assert pts.shape == (4, 2)
    assert tuple(pts[0]) == (0.0, 1080.0)
    assert tuple(pts[2]) == (1920.0, 0.0)


def test_edge_lengths_and_centroid() -> None:
    edges = edge_lengths(pixel_square(100.0))

    assert edges.top == pytest.approx(100.0)
    assert edges.bottom == pytest.approx(100.0)
    assert edges.left == pytest.approx(100.0)
    assert edges.right == pytest.approx(100.0)
    assert edges.mean == pytest.approx(100.0)
    assert centroid(pixel_square(100.0)) == pytest.approx((550.0, 550.0))


def test_markers_centroid_empty_is_none() -> None:
    assert markers_centroid([]) is None
    center = markers_centroid([square_marker(0.25, 0.5), square_marker(0.75, 0.5)])
    assert center == pytest.approx((0.5, 0.5))


@pytest.mark.parametrize("angle", [0.0, 3.0, -12.0, 30.0, 89.0])
def test_in_plane_roll_matches_rotation(angle) -> None:
    roll = in_plane_roll(rotate(pixel_square(), angle))
    assert roll == pytest.approx(angle, abs=1e-6)


@pytest.mark.parametrize("angle", [0.0, 7.5, -20.0, 44.0, 85.0])
def test_in_plane_roll_invariant_under_half_turn(angle) -> None:
    corners = rotate(pixel_square(), angle)
    flipped = rotate(corners, 180.0)

    assert in_plane_roll(flipped) == pytest.approx(in_plane_roll(corners), abs=1e-6)
    assert -90.0 < in_plane_roll(flipped) <= 90.0


def test_in_plane_roll_averages_skewed_edges() -> None:
    # Top edge rises 2°, bottom edge rises 4°: mean 3°
    top_dy = 100.0 * math.tan(math.radians(2.0))
    bottom_dy = 100.0 * math.tan(math.radians(4.0))
    corners = [(0.0, 100.0), (100.0, 100.0 + top_dy), (100.0, bottom_dy), (0.0, 0.0)]

    assert in_plane_roll(corners) == pytest.approx(3.0, abs=0.05)


def test_distance_decreases_as_marker_grows() -> None:
    distances = [distance_estimate_cm(pixel_square(size), 6.0, 1600.0) for size in (50, 100, 150, 200, 400)]

    assert all(d is not None for d in distances)
    assert all(a > b for a, b in zip(distances, distances[1:]))
    assert distances[1] == pytest.approx(96.0)


def test_distance_degenerate_marker_is_unknown() -> None:
    collapsed = [(10.0, 10.0)] * 4
    assert distance_estimate_cm(collapsed, 6.0, 1600.0) is None


def test_tilt_estimate_flat_square() -> None:
    tilt = tilt_estimate(pixel_square())

    assert tilt is not None
    assert tilt.tilt_x_deg == pytest.approx(0.0)
    assert tilt.tilt_y_deg == pytest.approx(0.0)
    assert tilt.is_flat
    assert tilt.normal == pytest.approx((0.0, 0.0, 1.0))
    assert tilt.angle_from_camera_deg == pytest.approx(0.0)


def test_tilt_estimate_is_monotonic_in_ratio() -> None:
    def trapezoid(top):
        # Bottom edge fixed at 100px, top edge varies
        offset = (100.0 - top) / 2.0
        return [(offset, 100.0), (offset + top, 100.0), (100.0, 0.0), (0.0, 0.0)]

    angles = [tilt_estimate(trapezoid(top)).tilt_y_deg for top in (60.0, 80.0, 100.0, 120.0, 140.0)]
    assert all(a < b for a, b in zip(angles, angles[1:]))


def test_tilt_estimate_clamps_ratio() -> None:
    extreme = [(45.0, 100.0), (55.0, 100.0), (100.0, 0.0), (0.0, 0.0)]  # top/bottom = 0.1
    tilt = tilt_estimate(extreme)
    bound = math.degrees(math.atan((0.5 - 1.0) * 2.0))

    assert tilt.tilt_y_deg == pytest.approx(bound)
    assert not tilt.is_flat


def test_tilt_estimate_degenerate_is_none() -> None:
    assert tilt_estimate([(0.0, 0.0), (0.0, 0.0), (10.0, 0.0), (0.0, 0.0)]) is None


def test_average_tilt_renormalizes_normal() -> None:
    a = tilt_estimate([(10.0, 100.0), (90.0, 100.0), (100.0, 0.0), (0.0, 0.0)])
    b = tilt_estimate(pixel_square())
    avg = average_tilt([a, None, b])

    assert avg.tilt_y_deg == pytest.approx((a.tilt_y_deg + b.tilt_y_deg) / 2.0)
    assert np.linalg.norm(avg.normal) == pytest.approx(1.0)
    assert average_tilt([None]) is None


def test_estimate_pose_square_facing_camera() -> None:
    pose = estimate_pose(pixel_square(100.0, origin=(910.0, 490.0)), ImageSize(1920, 1080))

    assert pose.roll_deg == pytest.approx(0.0)
    assert pose.pitch_deg == pytest.approx(0.0)
    assert pose.yaw_deg == pytest.approx(0.0)
    assert pose.tilt_angle_deg == pytest.approx(0.0)
    assert pose.translation[2] == pytest.approx(0.05 * 1920 / 100.0)
    np.testing.assert_allclose(pose.rotation_matrix, np.eye(3), atol=1e-9)


def test_estimate_pose_rotation_matrix_is_orthonormal() -> None:
    pose = estimate_pose([(5.0, 100.0), (95.0, 100.0), (100.0, 0.0), (0.0, 0.0)], ImageSize(1920, 1080))
    r = pose.rotation_matrix

    assert pose.pitch_deg == pytest.approx((1.0 - 90.0 / 100.0) * 45.0)
    np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-9)


def test_estimate_pose_degenerate_is_none() -> None:
    assert estimate_pose([(1.0, 1.0)] * 4, ImageSize(1920, 1080)) is None
