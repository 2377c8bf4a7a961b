"""Tests for the per-frame landmark geometry."""
from __future__ import annotations

import math

import numpy as np
import pytest

from conftest import make_points
from landmarks import (
    DISTANCE_TRIPLE,
    GUIDE_SEGMENTS,
    MARKED_POINTS,
    BoundingBox,
    FrameLandmarks,
    LandmarkIndex,
    LandmarkIndexError,
    LandmarkPoint,
    Point3D,
    analyze_frame,
    compute_z_range,
    distance_metric,
    is_empty_range,
    same_face_identity,
    select_by_fixed_indices,
)


def test_z_range_bounds_are_actual_values():
    zs = [0.5, -3.25, 7.0, 2.0, -3.0]
    points = [LandmarkPoint(i, Point3D(0.0, 0.0, z)) for i, z in enumerate(zs)]
    z_min, z_max = compute_z_range(points)
    assert z_min <= z_max
    assert (z_min, z_max) == (-3.25, 7.0)
    assert z_min in zs and z_max in zs


def test_z_range_single_point():
    assert compute_z_range([LandmarkPoint(0, Point3D(1, 2, 3))]) == (3, 3)


def test_z_range_empty_is_sentinel():
    z_range = compute_z_range([])
    assert z_range == (math.inf, -math.inf)
    assert is_empty_range(z_range)
    assert not is_empty_range((0.0, 0.0))


def test_distance_metric_known_value():
    d = distance_metric(Point3D(0, 0, 0), Point3D(1, 0, 0), Point3D(1, 1, 1))
    # (2, 2, 2) - (1, 0, 0) = (1, 2, 2)
    assert d == pytest.approx(3.0)


def test_distance_metric_depends_on_origin_not_just_endpoints():
    p1, p2, origin = Point3D(1, 2, 3), Point3D(4, 5, 6), Point3D(0, 0, 0)
    d = distance_metric(p1, p2, origin)
    swapped = distance_metric(origin, p2, p1)
    assert d == pytest.approx(math.sqrt(27))
    assert swapped == pytest.approx(math.sqrt(5))
    assert d != pytest.approx(swapped)


def test_distance_metric_p1_p2_swap_only_symmetric_at_zero_origin():
    p1, p2 = Point3D(1, 2, 3), Point3D(4, 5, 6)
    zero = Point3D(0, 0, 0)
    assert distance_metric(p1, p2, zero) == pytest.approx(distance_metric(p2, p1, zero))

    origin = Point3D(1, 1, 1)
    assert distance_metric(p1, p2, origin) != pytest.approx(distance_metric(p2, p1, origin))


def test_distance_metric_is_deterministic():
    args = (Point3D(0.1, 0.2, 0.3), Point3D(0.7, -0.4, 1.5), Point3D(2.0, 0.5, -1.0))
    assert distance_metric(*args) == distance_metric(*args)


def test_same_face_identity_reflexive(face_points):
    assert same_face_identity(face_points, face_points)


def test_same_face_identity_length_mismatch():
    assert not same_face_identity(make_points(10), make_points(11))
    assert not same_face_identity(make_points(1), [])


def test_same_face_identity_detects_single_z_change():
    a = make_points(10, fill=(1.0, 2.0, 3.0))
    b = list(make_points(10, fill=(1.0, 2.0, 3.0)))
    assert same_face_identity(a, b)

    b[7] = LandmarkPoint(7, Point3D(1.0, 2.0, 3.0 + 1e-6))
    assert not same_face_identity(a, b)


def test_same_face_identity_has_no_tolerance():
    a = [LandmarkPoint(0, Point3D(0.1 + 0.2, 0.0, 0.0))]
    b = [LandmarkPoint(0, Point3D(0.3, 0.0, 0.0))]
    assert not same_face_identity(a, b)


def test_select_by_fixed_indices_bounds():
    points = make_points(468)
    assert select_by_fixed_indices(points, [467])[0].index == 467
    with pytest.raises(LandmarkIndexError) as exc:
        select_by_fixed_indices(points, [468])
    assert exc.value.index == 468 and exc.value.size == 468
    assert isinstance(exc.value, IndexError)


def test_select_by_fixed_indices_rejects_negative():
    with pytest.raises(LandmarkIndexError):
        select_by_fixed_indices(make_points(5), [-1])


def test_end_to_end_scenario():
    points = make_points(390, overrides={6: (1, 2, 3), 46: (4, 5, 6), 276: (7, 8, 9)})
    assert compute_z_range(points) == (0, 9)

    picked = select_by_fixed_indices(points, [6, 46, 276])
    assert [p.index for p in picked] == [6, 46, 276]
    assert [p.position for p in picked] == [Point3D(1, 2, 3), Point3D(4, 5, 6), Point3D(7, 8, 9)]


def test_named_indices_match_face_mesh_numbers():
    assert [int(i) for i in MARKED_POINTS] == [6, 46, 276, 127, 389]
    assert [(int(a), int(b)) for a, b in GUIDE_SEGMENTS] == [(46, 127), (276, 389), (159, 145), (386, 374)]
    assert [int(i) for i in DISTANCE_TRIPLE] == [5, 10, 0]
    assert LandmarkIndex.LEFT_EYEBROW_TIP == 46


class TestFrameLandmarks:
    def test_rejects_duplicate_indices(self):
        p = LandmarkPoint(3, Point3D(0, 0, 0))
        with pytest.raises(ValueError, match="duplicate"):
            FrameLandmarks(points=[p, p])

    def test_rejects_triangle_outside_frame(self):
        with pytest.raises(ValueError):
            FrameLandmarks(points=make_points(3), triangles=[(0, 1, 3)])

    def test_rejects_malformed_triangle(self):
        with pytest.raises(ValueError):
            FrameLandmarks(points=make_points(3), triangles=[(0, 1)])

    def test_stores_tuples(self):
        frame = FrameLandmarks(points=list(make_points(3)), triangles=[[0, 1, 2]])
        assert isinstance(frame.points, tuple)
        assert frame.triangles == ((0, 1, 2),)
        assert len(frame) == 3

    def test_positions_and_z_range(self):
        frame = FrameLandmarks(points=make_points(4, overrides={2: (1.0, 2.0, -5.0)}))
        pos = frame.positions()
        assert pos.shape == (4, 3)
        np.testing.assert_allclose(pos[2], [1.0, 2.0, -5.0])
        assert frame.z_range() == (-5.0, 0.0)

    def test_empty_frame(self):
        frame = FrameLandmarks(points=())
        assert frame.positions().shape == (0, 3)
        assert is_empty_range(frame.z_range())


def test_bounding_box_from_points():
    points = make_points(3, overrides={0: (10, 20, 0), 1: (-5, 40, 0), 2: (30, 0, 1)})
    box = BoundingBox.from_points(points)
    assert box == BoundingBox(-5, 0, 30, 40)
    assert (box.width, box.height) == (35, 40)
    with pytest.raises(ValueError):
        BoundingBox.from_points([])


class TestAnalyzeFrame:
    def test_full_frame(self):
        points = make_points(468, overrides={5: (0, 0, 0), 10: (1, 0, 0), 0: (1, 1, 1), 46: (3, 3, 4)})
        analysis = analyze_frame(FrameLandmarks(points=points))
        assert analysis.z_range == (0, 4)
        assert not is_empty_range(analysis.z_range)
        assert [p.index for p in analysis.marked] == [6, 46, 276, 127, 389]
        assert [(a.index, b.index) for a, b in analysis.segments] == [(46, 127), (276, 389), (159, 145), (386, 374)]
        assert analysis.distance == pytest.approx(3.0)

    def test_degraded_frame_raises(self):
        with pytest.raises(LandmarkIndexError):
            analyze_frame(FrameLandmarks(points=make_points(300)))

    def test_empty_frame_is_not_an_error(self):
        analysis = analyze_frame(FrameLandmarks(points=()))
        assert is_empty_range(analysis.z_range)
        assert analysis.marked == () and analysis.segments == ()
        assert analysis.distance is None
