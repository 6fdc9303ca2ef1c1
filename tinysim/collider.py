"""Collision shapes attached to entities."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np


class ShapeType(enum.Enum):
    SPHERE = enum.auto()
    BOX = enum.auto()
    CAPSULE = enum.auto()


@dataclass
class Collider:
    """Shape, size and surface properties of a collision volume.

    ``offset`` shifts the shape's centre from the entity's position.
    A capsule's ``capsule_height`` is its full height including both caps.
    """

    shape: ShapeType = ShapeType.SPHERE
    radius: float = 0.5
    half_extents: np.ndarray = field(default_factory=lambda: np.full(3, 0.5))
    capsule_radius: float = 0.5
    capsule_height: float = 2.0
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3))
    friction: float = 0.5
    restitution: float = 0.5
    is_active: bool = True
    is_trigger: bool = False
    visualize: bool = False

    def __post_init__(self) -> None:
        self.shape = ShapeType(self.shape)
        self.half_extents = np.array(self.half_extents, dtype=float).reshape(3)
        self.offset = np.array(self.offset, dtype=float).reshape(3)