"""Rigid transforms and the quaternion helpers they rely on.

Quaternions are numpy arrays ordered ``(w, x, y, z)``; Euler angles are
radians ordered ``(pitch, yaw, roll)`` about the x, y and z axes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

_EPSILON = 1e-7


def _vec3(value) -> np.ndarray:
    return np.array(value, dtype=float).reshape(3)


def quat_from_euler(euler) -> np.ndarray:
    """Build a unit quaternion from Euler angles in radians."""
    half = _vec3(euler) * 0.5
    cx, cy, cz = np.cos(half)
    sx, sy, sz = np.sin(half)
    return np.array(
        [
            cx * cy * cz + sx * sy * sz,
            sx * cy * cz - cx * sy * sz,
            cx * sy * cz + sx * cy * sz,
            cx * cy * sz - sx * sy * cz,
        ]
    )


def quat_multiply(a, b) -> np.ndarray:
    """Hamilton product ``a * b``."""
    aw, ax, ay, az = np.asarray(a, dtype=float)
    bw, bx, by, bz = np.asarray(b, dtype=float)
    return np.array(
        [
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by + ay * bw + az * bx - ax * bz,
            aw * bz + az * bw + ax * by - ay * bx,
        ]
    )


def quat_rotate(q, v) -> np.ndarray:
    """Rotate vector ``v`` by the unit quaternion ``q``."""
    q = np.asarray(q, dtype=float)
    v = _vec3(v)
    axis = q[1:]
    uv = np.cross(axis, v)
    uuv = np.cross(axis, uv)
    return v + (uv * q[0] + uuv) * 2.0


def quat_to_matrix(q) -> np.ndarray:
    """Return the 3x3 rotation matrix of the unit quaternion ``q``."""
    w, x, y, z = np.asarray(q, dtype=float)
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ]
    )


def euler_from_quat(q) -> np.ndarray:
    """Recover ``(pitch, yaw, roll)`` from a unit quaternion."""
    w, x, y, z = np.asarray(q, dtype=float)
    py = 2.0 * (y * z + w * x)
    px = w * w - x * x - y * y + z * z
    if abs(py) < _EPSILON and abs(px) < _EPSILON:
        pitch = 2.0 * math.atan2(x, w)
    else:
        pitch = math.atan2(py, px)
    yaw = math.asin(min(max(-2.0 * (x * z - w * y), -1.0), 1.0))
    roll = math.atan2(2.0 * (x * y + w * z), w * w + x * x - y * y - z * z)
    return np.array([pitch, yaw, roll])


@dataclass
class Transform:
    """Position, Euler rotation (radians) and scale of an entity."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self) -> None:
        self.position = _vec3(self.position)
        self.rotation = _vec3(self.rotation)
        self.scale = _vec3(self.scale)

    def orientation(self) -> np.ndarray:
        """The rotation as a unit quaternion."""
        return quat_from_euler(self.rotation)

    def matrix(self) -> np.ndarray:
        """The 4x4 model matrix: translate * rotate * scale."""
        m = np.eye(4)
        m[:3, :3] = quat_to_matrix(self.orientation()) * self.scale
        m[:3, 3] = self.position
        return m