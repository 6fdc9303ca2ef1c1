"""The demo scene: a pinned cloth falling onto a capsule figure above the ground."""

from __future__ import annotations

import argparse
import logging

import numpy as np

from .cloth import Cloth, plane_mesh
from .collider import Collider, ShapeType
from .collision import CollisionSystem
from .ecs import PhysicsSystem, Registry
from .pbd_cloth import PBDClothSystem
from .rigidbody import RigidBody
from .rigidbody_system import RigidBodySystem
from .transform import Transform

logger = logging.getLogger(__name__)


def create_scene(registry: Registry, cloth_resolution: int = 32) -> dict[str, int]:
    """Populate ``registry`` and return the entity ids by role."""
    model = registry.create()
    registry.emplace(model, Transform())
    registry.emplace(model, RigidBody(mass=0.0))
    registry.emplace(
        model,
        Collider(
            shape=ShapeType.CAPSULE,
            capsule_radius=0.6,
            capsule_height=3.4,
            offset=(0.0, 1.7, 0.0),
            visualize=True,
        ),
    )

    ground = registry.create()
    registry.emplace(ground, Transform())
    registry.emplace(
        ground,
        Collider(shape=ShapeType.BOX, half_extents=(4.0, 0.1, 4.0), visualize=True),
    )

    cloth_entity = registry.create()
    cloth_transform = Transform(position=(0.0, 10.0, 0.0))
    registry.emplace(cloth_entity, cloth_transform)
    vertices, indices = plane_mesh(10.0, 10.0, cloth_resolution, cloth_resolution)
    cloth = Cloth(vertices, indices, cloth_transform, 0.1, visualize=True)
    cloth.fixed_vertices[0] = True
    cloth.fixed_vertices[cloth_resolution] = True
    registry.emplace(cloth_entity, cloth)

    return {"model": model, "ground": ground, "cloth": cloth_entity}


def build_physics() -> PhysicsSystem:
    """A physics pipeline running rigid bodies, collisions and cloth, in that order."""
    physics = PhysicsSystem()
    physics.register_subsystem(RigidBodySystem())
    physics.register_subsystem(CollisionSystem())
    physics.register_subsystem(PBDClothSystem())
    return physics


def run(steps: int = 100, dt: float = 1.0 / 60.0, cloth_resolution: int = 32):
    """Build the scene, advance it ``steps`` times and return ``(registry, entities)``."""
    if steps < 0:
        raise ValueError("steps must not be negative")
    if dt <= 0.0:
        raise ValueError("dt must be positive")
    registry = Registry()
    entities = create_scene(registry, cloth_resolution)
    physics = build_physics()
    for _ in range(steps):
        physics.update(registry, dt)
    return registry, entities


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the cloth simulation headless.")
    parser.add_argument("--steps", type=int, default=100, help="number of physics steps")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="step length in seconds")
    parser.add_argument("--resolution", type=int, default=32, help="cloth segments per side")
    args = parser.parse_args(argv)

    try:
        registry, entities = run(args.steps, args.dt, args.resolution)
    except ValueError as exc:
        parser.error(str(exc))

    cloth = registry.get(entities["cloth"], Cloth)
    lowest = float(np.min(cloth.positions[:, 1]))
    centroid = cloth.positions.mean(axis=0)
    print(f"steps: {args.steps}")
    print(f"cloth lowest y: {lowest:.4f}")
    print(f"cloth centroid: {centroid[0]:.4f} {centroid[1]:.4f} {centroid[2]:.4f}")
    return 0