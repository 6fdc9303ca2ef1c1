"""Position-based cloth simulation step and point-versus-collider queries."""

from __future__ import annotations

import numpy as np

from .cloth import Cloth
from .collider import Collider, ShapeType
from .ecs import PhysicsSubsystem, Registry
from .geometry import closest_point_on_line_segment
from .transform import Transform

_DEGENERATE = 1e-6
_SURFACE_EPSILON = 1e-3
_MIN_DT = 1e-4


def _normalize(v: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", divide="ignore"):
        return v / np.linalg.norm(v)


def _local_to_world(transform: Transform, collider: Collider) -> np.ndarray:
    offset = np.eye(4)
    offset[:3, 3] = collider.offset
    return transform.matrix() @ offset


def _apply(matrix: np.ndarray, v: np.ndarray, w: float) -> np.ndarray:
    return (matrix @ np.append(v, w))[:3]


def collide_sphere(point, collider: Collider, transform: Transform):
    """Return ``(surface_pos, normal)`` if ``point`` is inside the sphere, else None."""
    point = np.asarray(point, dtype=float)
    center = transform.position + collider.offset
    radius = collider.radius
    delta = point - center
    dist = float(np.linalg.norm(delta))
    if dist >= radius:
        return None
    if dist < _DEGENERATE:
        return center + np.array([radius, 0.0, 0.0]), np.array([1.0, 0.0, 0.0])
    return center + delta * (radius / dist), delta / dist


def collide_box(point, collider: Collider, transform: Transform):
    """Return ``(surface_pos, normal)`` if ``point`` is strictly inside the box, else None."""
    local_to_world = _local_to_world(transform, collider)
    local_point = _apply(np.linalg.inv(local_to_world), np.asarray(point, dtype=float), 1.0)
    half = collider.half_extents
    if not np.all((local_point > -half) & (local_point < half)):
        return None

    penetration = half - np.abs(local_point)
    axis = 0
    if penetration[1] < penetration[axis]:
        axis = 1
    if penetration[2] < penetration[axis]:
        axis = 2

    local_surface = local_point.copy()
    local_normal = np.zeros(3)
    sign = 1.0 if local_point[axis] > 0 else -1.0
    local_surface[axis] = sign * half[axis]
    local_normal[axis] = sign
    surface = _apply(local_to_world, local_surface, 1.0)
    normal = _normalize(_apply(local_to_world, local_normal, 0.0))
    return surface, normal


def collide_capsule(point, collider: Collider, transform: Transform):
    """Return ``(surface_pos, normal)`` if ``point`` is inside the capsule, else None."""
    local_to_world = _local_to_world(transform, collider)
    local_point = _apply(np.linalg.inv(local_to_world), np.asarray(point, dtype=float), 1.0)
    radius = collider.capsule_radius
    half_height = (collider.capsule_height - radius * 2.0) * 0.5
    bottom = np.array([0.0, -half_height, 0.0])
    top = np.array([0.0, half_height, 0.0])
    closest = closest_point_on_line_segment(local_point, bottom, top)
    delta = local_point - closest
    dist = float(np.linalg.norm(delta))
    if dist >= radius:
        return None
    if dist > _DEGENERATE:
        local_surface = closest + delta * (radius / dist)
        local_normal = delta / dist
    else:
        local_surface = closest + np.array([radius, 0.0, 0.0])
        local_normal = np.array([1.0, 0.0, 0.0])
    surface = _apply(local_to_world, local_surface, 1.0)
    normal = _normalize(_apply(local_to_world, local_normal, 0.0))
    return surface, normal


_COLLIDERS = {
    ShapeType.SPHERE: collide_sphere,
    ShapeType.BOX: collide_box,
    ShapeType.CAPSULE: collide_capsule,
}


class PBDClothSystem(PhysicsSubsystem):
    """Advances every cloth: predict, collide, project constraints, commit."""

    priority = 2

    def __init__(self, solver_iterations: int = 10) -> None:
        self.solver_iterations = solver_iterations

    def execution_priority(self) -> int:
        return self.priority

    def update(self, registry: Registry, dt: float) -> None:
        colliders = registry.view(Collider, Transform)
        for _, cloth, transform in registry.view(Cloth, Transform):
            self.predict_positions(cloth, dt)
            for _, collider, collider_transform in colliders:
                self.handle_collisions(cloth, collider, collider_transform)
            self.solve_constraints(cloth)
            self.update_positions(cloth, dt)
            cloth.vertices = cloth.local_vertices(transform)

    def predict_positions(self, cloth: Cloth, dt: float) -> None:
        """Apply gravity, field force and damping, then predict new positions."""
        inv_masses = cloth.inv_masses[:, None]
        acceleration = cloth.field_force * inv_masses + cloth.gravity
        cloth.velocities += acceleration * dt
        cloth.velocities *= np.maximum(1.0 - cloth.damping * inv_masses * dt, 0.0)
        cloth.pred_positions[:] = cloth.positions + cloth.velocities * dt

    def handle_collisions(self, cloth: Cloth, collider: Collider,
                          collider_transform: Transform) -> None:
        """Push predicted positions out of ``collider`` and damp the velocities."""
        if not collider.is_active:
            return
        test = _COLLIDERS[collider.shape]
        movable = ~cloth.fixed_vertices & (cloth.inv_masses > 0.0)
        for i in np.flatnonzero(movable):
            hit = test(cloth.pred_positions[i], collider, collider_transform)
            if hit is None:
                continue
            surface, normal = hit
            cloth.pred_positions[i] = surface + normal * _SURFACE_EPSILON
            velocity_normal = float(np.dot(cloth.velocities[i], normal))
            if velocity_normal < 0:
                cloth.velocities[i] -= velocity_normal * normal
            tangent_velocity = cloth.velocities[i] - velocity_normal * normal
            cloth.velocities[i] -= tangent_velocity * (1.0 - cloth.friction_factor)

    def solve_constraints(self, cloth: Cloth) -> None:
        for constraint in cloth.constraints:
            constraint.project(cloth, self.solver_iterations)

    def update_positions(self, cloth: Cloth, dt: float) -> None:
        """Commit predictions for free particles and derive their velocities."""
        free = ~cloth.fixed_vertices
        step = max(dt, _MIN_DT)
        cloth.velocities[free] = (cloth.pred_positions[free] - cloth.positions[free]) / step
        cloth.positions[free] = cloth.pred_positions[free]