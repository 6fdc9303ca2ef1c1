"""Cloth state for position-based dynamics, with distance and bending constraints."""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from .transform import Transform

_EPSILON = 1e-4
_MIN_MASS = 1e-4


def _normalize(v: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", divide="ignore"):
        return v / np.linalg.norm(v)


def _to_homogeneous(points: np.ndarray) -> np.ndarray:
    return np.hstack([points, np.ones((len(points), 1))])


def _transform_points(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    return (_to_homogeneous(points) @ matrix.T)[:, :3]


def _triangle_edges(tri):
    """The three edges of a triangle, each as a sorted vertex pair."""
    tri = [int(v) for v in tri]
    for a, b in zip(tri, (*tri[1:], tri[0])):
        yield (a, b) if a <= b else (b, a)


def plane_mesh(width: float, height: float, segments_x: int, segments_z: int):
    """A flat grid in the xz plane centred on the origin.

    Returns ``(vertices, indices)``: an ``(n, 3)`` float array laid out row by
    row along x, and a flat array of triangle indices.
    """
    if segments_x < 1 or segments_z < 1:
        raise ValueError("a plane needs at least one segment along each axis")
    xs = np.linspace(-width / 2.0, width / 2.0, segments_x + 1)
    zs = np.linspace(-height / 2.0, height / 2.0, segments_z + 1)
    grid_x, grid_z = np.meshgrid(xs, zs)
    vertices = np.column_stack(
        [grid_x.ravel(), np.zeros(grid_x.size), grid_z.ravel()]
    )

    row = segments_x + 1
    cells_z, cells_x = np.meshgrid(np.arange(segments_z), np.arange(segments_x), indexing="ij")
    v00 = (cells_z * row + cells_x).ravel()
    v10 = v00 + 1
    v01 = v00 + row
    v11 = v01 + 1
    triangles = np.column_stack([v00, v01, v10, v10, v01, v11]).reshape(-1, 3)
    return vertices, triangles.ravel().astype(np.int64)


class _Link(NamedTuple):
    v0: int
    v1: int
    rest_length: float


class _Hinge(NamedTuple):
    a: int
    b: int
    c: int
    d: int
    rest_angle: float


class Cloth:
    """A triangle mesh simulated as particles joined by constraints.

    ``positions`` are in world space. ``fixed_vertices`` pins particles in
    place; ``inv_masses`` come from spreading each triangle's mass
    (area times ``density``) over its corners.
    """

    def __init__(
        self,
        vertices,
        indices,
        transform: Transform | None = None,
        density: float = 0.1,
        *,
        distance_stiffness: float = 1.0,
        bend_stiffness: float = 0.1,
        damping: float = 0.01,
        gravity=(0.0, -9.8, 0.0),
        field_force=(0.0, 0.0, 0.0),
        friction_factor: float = 0.5,
        visualize: bool = False,
    ) -> None:
        vertices = np.array(vertices, dtype=float)
        indices = np.array(indices, dtype=np.int64).ravel()
        if vertices.ndim != 2 or vertices.shape[1] != 3 or len(vertices) == 0:
            raise ValueError("cloth vertices must be a non-empty (n, 3) array")
        if len(indices) == 0 or len(indices) % 3 != 0:
            raise ValueError("cloth indices must describe whole triangles")
        if indices.min() < 0 or indices.max() >= len(vertices):
            raise ValueError("cloth index out of range")

        transform = transform if transform is not None else Transform()
        self.vertices = vertices
        self.indices = indices
        self.init_transform = transform.matrix()
        self.distance_stiffness = float(distance_stiffness)
        self.bend_stiffness = float(bend_stiffness)
        self.damping = float(damping)
        self.gravity = np.array(gravity, dtype=float).reshape(3)
        self.field_force = np.array(field_force, dtype=float).reshape(3)
        self.friction_factor = float(friction_factor)
        self.visualize = visualize

        self.positions = _transform_points(self.init_transform, vertices)
        self.pred_positions = self.positions.copy()
        self.velocities = np.zeros_like(self.positions)
        self.fixed_vertices = np.zeros(len(vertices), dtype=bool)

        triangles = indices.reshape(-1, 3)
        p0, p1, p2 = (self.positions[triangles[:, k]] for k in range(3))
        areas = 0.5 * np.linalg.norm(np.cross(p1 - p0, p2 - p0), axis=1)
        shares = np.repeat((areas * density / 3.0)[:, None], 3, axis=1)
        masses = np.zeros(len(vertices))
        np.add.at(masses, triangles, shares)
        self.inv_masses = 1.0 / np.maximum(masses, _MIN_MASS)

        self.constraints = [DistanceConstraint(self), BendConstraint(self)]

    def local_vertices(self, transform: Transform) -> np.ndarray:
        """The current particle positions expressed in ``transform``'s local space."""
        inverse = np.linalg.inv(transform.matrix())
        return _transform_points(inverse, self.positions)


class DistanceConstraint:
    """Keeps every mesh edge at its rest length."""

    def __init__(self, cloth: Cloth) -> None:
        self.constraints: list[_Link] = []
        # Rest lengths are measured with the initial transform applied once more.
        reference = _transform_points(cloth.init_transform, cloth.positions)
        seen: set[tuple[int, int]] = set()
        for tri in cloth.indices.reshape(-1, 3):
            for edge in _triangle_edges(tri):
                if edge in seen:
                    continue
                seen.add(edge)
                a, b = edge
                rest = float(np.linalg.norm(reference[a] - reference[b]))
                self.constraints.append(_Link(a, b, rest))

    def project(self, cloth: Cloth, iterations: int) -> None:
        """Move predicted positions toward satisfying every edge length."""
        pred = cloth.pred_positions
        fixed = cloth.fixed_vertices
        inv_masses = cloth.inv_masses
        for _ in range(iterations):
            scale = cloth.distance_stiffness / float(iterations)
            for link in self.constraints:
                delta = pred[link.v1] - pred[link.v0]
                length = float(np.linalg.norm(delta))
                if length < _EPSILON:
                    continue
                correction = (length - link.rest_length) * (delta / length) * scale
                fixed0, fixed1 = fixed[link.v0], fixed[link.v1]
                if not fixed0 and not fixed1:
                    w0, w1 = inv_masses[link.v0], inv_masses[link.v1]
                    pred[link.v0] += correction * (w0 / (w0 + w1))
                    pred[link.v1] -= correction * (w1 / (w0 + w1))
                elif not fixed0:
                    pred[link.v0] += correction
                elif not fixed1:
                    pred[link.v1] -= correction


class BendConstraint:
    """Keeps the dihedral angle across each shared edge at its rest value."""

    def __init__(self, cloth: Cloth) -> None:
        self.constraints: list[_Hinge] = []
        triangles = cloth.indices.reshape(-1, 3)
        edge_triangles: dict[tuple[int, int], list[int]] = {}
        for tri_idx, tri in enumerate(triangles):
            for edge in _triangle_edges(tri):
                edge_triangles.setdefault(edge, []).append(tri_idx)

        def third_vertex(tri, a: int, b: int) -> int:
            return next((int(v) for v in tri if v != a and v != b), int(tri[0]))

        def normal(v0: int, v1: int, v2: int) -> np.ndarray:
            p0, p1, p2 = cloth.positions[v0], cloth.positions[v1], cloth.positions[v2]
            return _normalize(np.cross(p1 - p0, p2 - p0))

        processed: set[tuple[int, int, int, int]] = set()
        for (a, b), tri_ids in sorted(edge_triangles.items()):
            if len(tri_ids) != 2:
                continue
            c = third_vertex(triangles[tri_ids[0]], a, b)
            d = third_vertex(triangles[tri_ids[1]], a, b)
            quad = (min(a, b), max(a, b), min(c, d), max(c, d))
            if quad in processed:
                continue
            processed.add(quad)
            cos_theta = float(np.dot(normal(a, b, c), normal(a, b, d)))
            rest_angle = math.acos(min(max(cos_theta, -1.0), 1.0))
            self.constraints.append(_Hinge(a, b, c, d, rest_angle))

    def project(self, cloth: Cloth, iterations: int) -> None:
        """Move predicted positions toward each hinge's rest angle."""
        pred = cloth.pred_positions
        fixed = cloth.fixed_vertices
        inv_masses = cloth.inv_masses
        for _ in range(iterations):
            for hinge in self.constraints:
                p1 = pred[hinge.a]
                p2 = pred[hinge.b] - p1
                p3 = pred[hinge.c] - p1
                p4 = pred[hinge.d] - p1
                cross23 = np.cross(p2, p3)
                cross24 = np.cross(p2, p4)
                n1 = _normalize(cross23)
                n2 = _normalize(cross24)
                d = min(max(float(np.dot(n1, n2)), -1.0), 1.0)
                len23 = max(float(np.linalg.norm(cross23)), _EPSILON)
                len24 = max(float(np.linalg.norm(cross24)), _EPSILON)
                q3 = (np.cross(p2, n2) + d * np.cross(n1, p2)) / len23
                q4 = (np.cross(p2, n1) + d * np.cross(n2, p2)) / len24
                q2 = (
                    -(np.cross(p3, n2) + d * np.cross(n1, p3)) / len23
                    - (np.cross(p4, n1) + d * np.cross(n2, p4)) / len24
                )
                q1 = -q2 - q3 - q4
                gradients = ((hinge.a, q1), (hinge.b, q2), (hinge.c, q3), (hinge.d, q4))

                denom = sum(
                    0.0 if fixed[v] else inv_masses[v] * float(np.dot(q, q))
                    for v, q in gradients
                )
                if denom < _EPSILON:
                    continue
                numerator = (
                    math.sqrt(1.0 - d * d)
                    * (math.acos(d) - hinge.rest_angle)
                    * (cloth.bend_stiffness / float(iterations))
                )
                for v, q in gradients:
                    if not fixed[v]:
                        pred[v] -= inv_masses[v] * q * numerator / denom