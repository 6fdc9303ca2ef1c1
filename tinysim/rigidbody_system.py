"""Integrates rigid bodies' forces and velocities into their transforms."""

from __future__ import annotations

import numpy as np

from .ecs import PhysicsSubsystem, Registry
from .rigidbody import RigidBody
from .transform import Transform, euler_from_quat, quat_multiply


def _normalize_quat(q: np.ndarray) -> np.ndarray:
    length = float(np.linalg.norm(q))
    if length <= 0.0:
        return np.array([1.0, 0.0, 0.0, 0.0])
    return q / length


class RigidBodySystem(PhysicsSubsystem):
    """Applies gravity and accumulated forces, then moves and turns each body."""

    priority = 0

    def __init__(self, gravity=(0.0, -9.81, 0.0)) -> None:
        self.gravity = np.array(gravity, dtype=float).reshape(3)

    def execution_priority(self) -> int:
        return self.priority

    def update(self, registry: Registry, dt: float) -> None:
        self.integrate_forces(registry, dt)

    def integrate_forces(self, registry: Registry, dt: float) -> None:
        """Advance every dynamic body by ``dt``; static and kinematic ones stay put."""
        for _, transform, body in registry.view(Transform, RigidBody):
            if body.is_kinematic or body.mass <= 0.0:
                continue
            body.integrate(dt, self.gravity)
            transform.position = transform.position + body.linear_velocity * dt

            rotation = transform.orientation()
            spin = np.array([0.0, *body.angular_velocity])
            rotation = _normalize_quat(rotation + 0.5 * dt * quat_multiply(spin, rotation))
            transform.rotation = euler_from_quat(rotation)