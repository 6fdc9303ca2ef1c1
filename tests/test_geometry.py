import math

import numpy as np
import pytest

from tinysim.collider import Collider, ShapeType
from tinysim.geometry import (
    capsule_endpoints,
    closest_point_on_line_segment,
    closest_points_between_lines,
    find_min,
)
from tinysim.transform import Transform


def test_closest_point_clamps_to_ends():
    a, b = (0, 0, 0), (2, 0, 0)
    assert np.allclose(closest_point_on_line_segment((-5, 1, 0), a, b), a)
    assert np.allclose(closest_point_on_line_segment((9, 1, 0), a, b), b)


def test_closest_point_projects_interior():
    assert np.allclose(closest_point_on_line_segment((1, 3, 0), (0, 0, 0), (2, 0, 0)), (1, 0, 0))


def test_closest_point_degenerate_segment():
    assert np.allclose(closest_point_on_line_segment((4, 4, 4), (1, 1, 1), (1, 1, 1)), (1, 1, 1))


def test_find_min_degenerate_segment():
    t, dist = find_min((3, 4, 0), (0, 0, 0), (0, 0, 0))
    assert t == 0.0
    assert dist == pytest.approx(5.0)


def test_find_min_interior():
    t, dist = find_min((1, 2, 0), (0, 0, 0), (2, 0, 0))
    assert t == pytest.approx(0.5)
    assert dist == pytest.approx(2.0)


def test_crossing_segments():
    pa, pb = closest_points_between_lines((-1, 0, 0), (1, 0, 0), (0, 1, -1), (0, 1, 1))
    assert np.allclose(pa, (0, 0, 0))
    assert np.allclose(pb, (0, 1, 0))


def test_parallel_segments():
    pa, pb = closest_points_between_lines((0, 0, 0), (1, 0, 0), (3, 1, 0), (4, 1, 0))
    assert np.allclose(pa, (1, 0, 0))
    assert np.allclose(pb, (3, 1, 0))


def test_point_segments():
    pa, pb = closest_points_between_lines((0, 0, 0), (0, 0, 0), (2, 2, 2), (2, 2, 2))
    assert np.allclose(pa, (0, 0, 0)) and np.allclose(pb, (2, 2, 2))


def test_first_segment_is_point():
    pa, pb = closest_points_between_lines((1, 5, 0), (1, 5, 0), (0, 0, 0), (2, 0, 0))
    assert np.allclose(pa, (1, 5, 0))
    assert np.allclose(pb, (1, 0, 0))


def test_capsule_endpoints_upright():
    t = Transform(position=(1, 0, 2))
    c = Collider(shape=ShapeType.CAPSULE, capsule_radius=0.6, capsule_height=3.4, offset=(0, 1.7, 0))
    base, top = capsule_endpoints(t, c)
    assert np.allclose((base + top) / 2, t.position + c.offset)
    assert np.linalg.norm(top - base) == pytest.approx(3.4 - 2 * 0.6)
    assert np.allclose(base[[0, 2]], top[[0, 2]])


def test_capsule_endpoints_rotated():
    t = Transform(rotation=(0, 0, math.pi / 2))
    c = Collider(shape=ShapeType.CAPSULE, capsule_radius=0.5, capsule_height=3.0)
    base, top = capsule_endpoints(t, c)
    direction = (top - base) / np.linalg.norm(top - base)
    assert np.allclose(direction, (-1, 0, 0))


def test_short_capsule_collapses_to_point():
    c = Collider(shape=ShapeType.CAPSULE, capsule_radius=1.0, capsule_height=1.0)
    base, top = capsule_endpoints(Transform(), c)
    assert np.allclose(base, top)