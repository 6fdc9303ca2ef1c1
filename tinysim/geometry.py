"""Closest-point queries on segments and capsule axis endpoints."""

from __future__ import annotations

import math

import numpy as np

from .transform import quat_rotate

_DEGENERATE = 1e-6


def _vec3(value) -> np.ndarray:
    return np.array(value, dtype=float).reshape(3)


def closest_point_on_line_segment(point, a, b) -> np.ndarray:
    """Closest point to ``point`` on segment ``a``-``b``."""
    point, a, b = _vec3(point), _vec3(a), _vec3(b)
    ab = b - a
    length_sq = float(ab @ ab)
    if length_sq == 0.0:
        return a
    t = min(max(float((point - a) @ ab) / length_sq, 0.0), 1.0)
    return a + t * ab


def find_min(point, seg_start, seg_end) -> tuple[float, float]:
    """Return ``(t, distance)`` of the closest point on the segment to ``point``."""
    point, seg_start, seg_end = _vec3(point), _vec3(seg_start), _vec3(seg_end)
    direction = seg_end - seg_start
    length_sq = float(direction @ direction)
    if length_sq < _DEGENERATE:
        return 0.0, float(np.linalg.norm(point - seg_start))
    t = min(max(float((point - seg_start) @ direction) / length_sq, 0.0), 1.0)
    projection = seg_start + t * direction
    return t, float(np.linalg.norm(point - projection))


def closest_points_between_lines(a1, a2, b1, b2) -> tuple[np.ndarray, np.ndarray]:
    """Closest pair of points between segments ``a1``-``a2`` and ``b1``-``b2``."""
    a1, a2, b1, b2 = _vec3(a1), _vec3(a2), _vec3(b1), _vec3(b2)
    d1 = a2 - a1
    d2 = b2 - b1
    r = a1 - b1

    a = float(d1 @ d1)
    b = float(d1 @ d2)
    c = float(d2 @ d2)
    d = float(d1 @ r)
    e = float(d2 @ r)
    denom = a * c - b * b

    if denom < _DEGENERATE:
        if a < _DEGENERATE and c < _DEGENERATE:
            return a1, b1
        if a < _DEGENERATE:
            t = min(max(-e / c, 0.0), 1.0)
            return a1, b1 + t * d2
        if c < _DEGENERATE:
            s = min(max(-d / a, 0.0), 1.0)
            return a1 + s * d1, b1

        t_a1, d_a1 = find_min(a1, b1, b2)
        t_a2, d_a2 = find_min(a2, b1, b2)
        s_b1, d_b1 = find_min(b1, a1, a2)
        s_b2, d_b2 = find_min(b2, a1, a2)
        candidates = [
            (a1, b1 + t_a1 * d2, d_a1),
            (a2, b1 + t_a2 * d2, d_a2),
            (a1 + s_b1 * d1, b1, d_b1),
            (a1 + s_b2 * d1, b2, d_b2),
        ]
        best_a, best_b, _ = min(candidates, key=lambda item: item[2])
        return best_a, best_b

    s = min(max((b * e - c * d) / denom, 0.0), 1.0)
    t = min(max((b * s + e) / c, 0.0), 1.0)
    s = min(max((b * t - d) / a, 0.0), 1.0)
    return a1 + s * d1, b1 + t * d2


def capsule_endpoints(transform, collider) -> tuple[np.ndarray, np.ndarray]:
    """World-space ``(base, top)`` of a capsule's inner segment."""
    center = transform.position + collider.offset
    up = quat_rotate(transform.orientation(), (0.0, 1.0, 0.0))
    cylinder_height = max(collider.capsule_height - 2.0 * collider.capsule_radius, 0.0)
    half = cylinder_height * 0.5
    if math.isnan(half):
        half = 0.0
    return center - up * half, center + up * half