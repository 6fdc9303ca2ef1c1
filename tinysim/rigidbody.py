"""Rigid-body state: mass, inertia, velocities and force accumulators."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


def _vec3(value) -> np.ndarray:
    return np.array(value, dtype=float).reshape(3)


def _zeros() -> np.ndarray:
    return np.zeros(3)


@dataclass
class RigidBody:
    """A body integrated with semi-implicit Euler steps.

    A mass of zero or less marks the body as immovable.
    """

    mass: float = 1.0
    inertia_tensor: np.ndarray = field(default_factory=lambda: np.eye(3))
    inv_inertia_tensor: np.ndarray = field(default_factory=lambda: np.eye(3))
    linear_velocity: np.ndarray = field(default_factory=_zeros)
    angular_velocity: np.ndarray = field(default_factory=_zeros)
    force_accumulator: np.ndarray = field(default_factory=_zeros)
    torque_accumulator: np.ndarray = field(default_factory=_zeros)
    center_of_mass: np.ndarray = field(default_factory=_zeros)
    linear_damping: float = 0.0
    angular_damping: float = 0.0
    is_kinematic: bool = False
    use_gravity: bool = True
    freeze_position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=bool))
    freeze_rotation: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=bool))

    def __post_init__(self) -> None:
        self.inertia_tensor = np.array(self.inertia_tensor, dtype=float).reshape(3, 3)
        for name in (
            "linear_velocity",
            "angular_velocity",
            "force_accumulator",
            "torque_accumulator",
            "center_of_mass",
        ):
            setattr(self, name, _vec3(getattr(self, name)))
        self.freeze_position = np.array(self.freeze_position, dtype=bool).reshape(3)
        self.freeze_rotation = np.array(self.freeze_rotation, dtype=bool).reshape(3)
        self.update_inertia()

    def set_mass(self, new_mass: float) -> None:
        self.mass = float(new_mass)
        self.update_inertia()

    def set_inertia_tensor(self, new_inertia) -> None:
        self.inertia_tensor = np.array(new_inertia, dtype=float).reshape(3, 3)
        self.update_inertia()

    def update_inertia(self) -> None:
        """Recompute the inverse inertia; zero for static or singular bodies."""
        if self.mass <= 0.0 or np.linalg.det(self.inertia_tensor) == 0.0:
            self.inv_inertia_tensor = np.zeros((3, 3))
        else:
            self.inv_inertia_tensor = np.linalg.inv(self.inertia_tensor)

    def integrate(self, dt: float, gravity) -> None:
        """Advance velocities by ``dt`` and clear the accumulators."""
        if self.is_kinematic or self.mass <= 0.0:
            return

        if self.use_gravity:
            self.force_accumulator = self.force_accumulator + _vec3(gravity) * self.mass

        acceleration = self.force_accumulator / self.mass
        self.linear_velocity = self.linear_velocity + acceleration * dt
        self.linear_velocity = self.linear_velocity * max(1.0 - self.linear_damping * dt, 0.0)

        angular_acceleration = self.inv_inertia_tensor @ self.torque_accumulator
        self.angular_velocity = self.angular_velocity + angular_acceleration * dt
        self.angular_velocity = self.angular_velocity * max(1.0 - self.angular_damping * dt, 0.0)

        self.linear_velocity = self.linear_velocity * (1.0 - self.freeze_position)
        self.angular_velocity = self.angular_velocity * (1.0 - self.freeze_rotation)

        self.force_accumulator = np.zeros(3)
        self.torque_accumulator = np.zeros(3)

    def add_force(self, force) -> None:
        self.force_accumulator = self.force_accumulator + _vec3(force)

    def add_force_at_position(self, force, position) -> None:
        force = _vec3(force)
        self.force_accumulator = self.force_accumulator + force
        self.torque_accumulator = self.torque_accumulator + np.cross(
            _vec3(position) - self.center_of_mass, force
        )

    def add_torque(self, torque) -> None:
        self.torque_accumulator = self.torque_accumulator + _vec3(torque)