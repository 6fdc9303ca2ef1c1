# tinysim

A small physics simulator built around an entity-component registry. It
integrates rigid bodies, detects and resolves collisions between sphere, box
and capsule colliders, and simulates position-based-dynamics cloth that is
pushed out of those colliders.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
tinysim
```

builds the built-in scene and steps it headless: a static capsule collider
standing on a thin box-shaped ground collider, and a 10 x 10 cloth placed
10 units above them, pinned at two corners, falling under gravity. When the
steps are done it prints the number of steps, the lowest y coordinate of the
cloth and the cloth's centroid.

Options:

- `--steps N` – number of physics steps (default 100)
- `--dt SECONDS` – length of each step (default 1/60)
- `--resolution N` – cloth segments per side (default 32)

A negative step count or a non-positive time step is rejected with a usage
error.

## Using the library

```python
from tinysim.ecs import Registry
from tinysim.simulation import create_scene, build_physics

registry = Registry()
entities = create_scene(registry, 16)   # {"model": ..., "ground": ..., "cloth": ...}
physics = build_physics()

for _ in range(120):
    physics.update(registry, 1 / 60)
```

`tinysim.simulation.run(steps, dt, cloth_resolution)` does the same in one
call and returns `(registry, entities)`.

The building blocks can be used on their own:

- `tinysim.transform` – `Transform` (position, Euler rotation in radians and
  scale, with `matrix()` and `orientation()`), and the quaternion helpers
  `quat_from_euler`, `quat_multiply`, `quat_rotate`, `quat_to_matrix` and
  `euler_from_quat`. Quaternions are `(w, x, y, z)` numpy arrays.
- `tinysim.rigidbody.RigidBody` – mass, inertia tensor, damping, frozen axes,
  force and torque accumulation (`add_force`, `add_force_at_position`,
  `add_torque`) and `integrate(dt, gravity)`. A mass of zero or less makes
  the body immovable.
- `tinysim.collider` – `Collider` and the `ShapeType` enum (`SPHERE`, `BOX`,
  `CAPSULE`), with offset, friction, restitution, and active and trigger
  flags.
- `tinysim.geometry` – `closest_point_on_line_segment`, `find_min`,
  `closest_points_between_lines` and `capsule_endpoints`.
- `tinysim.collision` – shape-pair tests (`sphere_vs_sphere`,
  `sphere_vs_box`, `sphere_vs_capsule`, `box_vs_capsule`,
  `capsule_vs_capsule`, `box_vs_box`) and the dispatcher `collide`, each
  returning a `CollisionManifold` or `None`; and `CollisionSystem`, which
  collects `CollisionPair`s and applies normal and friction impulses plus
  positional correction. Pairs involving a trigger collider are detected but
  not resolved.
- `tinysim.cloth` – `Cloth`, built from vertices and triangle indices (for
  example from `plane_mesh(width, height, segments_x, segments_z)`), with
  `DistanceConstraint` and `BendConstraint`, pinned particles via
  `fixed_vertices`, and `local_vertices(transform)`.
- `tinysim.pbd_cloth` – `PBDClothSystem`, which steps every cloth in a
  registry (predict, collide, project constraints, commit), and the point
  queries `collide_sphere`, `collide_box` and `collide_capsule`.
- `tinysim.rigidbody_system.RigidBodySystem` – integrates dynamic bodies
  under gravity and updates their transforms.
- `tinysim.ecs` – `Registry` (`create`, `emplace`, `get`, `try_get`,
  `view`), `PhysicsSubsystem`, and `PhysicsSystem`, which runs registered
  subsystems through their pre-update, update and post-update phases in
  registration order.
- `tinysim.events` – `Event`, `EventManager` and the shared
  `get_event_manager()`: a simple event bus with listeners per event type.
- `tinysim.resolver` – `Resolver`, an editable list of search directories
  that resolves relative paths, and the shared `get_file_resolver()`.

## What it does not do

tinysim is a headless simulation library. It does not open a window, draw
anything, read keyboard or mouse input, move a camera, or load meshes or
shaders from files. The colliders' and cloth's `visualize` flags are stored
but nothing reads them, and no part of the package sends events on the event
bus on its own.