"""Narrow-phase collision tests between colliders and impulse-based response."""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass

import numpy as np

from .collider import Collider, ShapeType
from .ecs import PhysicsSubsystem, Registry
from .geometry import (
    capsule_endpoints,
    closest_point_on_line_segment,
    closest_points_between_lines,
)
from .rigidbody import RigidBody
from .transform import Transform

_EPSILON = 1e-6
_SLOP = 0.01
_CORRECTION_FACTOR = 0.8


@dataclass
class CollisionManifold:
    """Contact data for one overlapping pair."""

    normal: np.ndarray
    contact_point: np.ndarray
    penetration_depth: float
    combined_friction: float
    combined_restitution: float


@dataclass
class CollisionPair:
    entity_a: int
    entity_b: int
    manifold: CollisionManifold


def _normalize(v: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", divide="ignore"):
        return v / np.linalg.norm(v)


def _apply(matrix: np.ndarray, v: np.ndarray, w: float) -> np.ndarray:
    return (matrix @ np.append(v, w))[:3]


def _manifold(normal, contact, depth, a_c: Collider, b_c: Collider) -> CollisionManifold:
    return CollisionManifold(
        normal=normal,
        contact_point=contact,
        penetration_depth=float(depth),
        combined_friction=math.sqrt(a_c.friction * b_c.friction),
        combined_restitution=math.sqrt(a_c.restitution * b_c.restitution),
    )


def sphere_vs_sphere(a_t: Transform, a_c: Collider, b_t: Transform, b_c: Collider):
    center_a = a_t.position + a_c.offset
    center_b = b_t.position + b_c.offset
    delta = center_b - center_a
    distance = float(np.linalg.norm(delta))
    combined_radius = a_c.radius + b_c.radius
    if distance < combined_radius:
        normal = _normalize(delta)
        return _manifold(normal, center_a + normal * a_c.radius,
                         combined_radius - distance, a_c, b_c)
    return None


def sphere_vs_box(sphere_t: Transform, sphere_c: Collider, box_t: Transform, box_c: Collider):
    box_matrix = box_t.matrix()
    inv_box = np.linalg.inv(box_matrix)
    sphere_world = sphere_t.position + sphere_c.offset
    sphere_center = _apply(inv_box, sphere_world, 1.0)
    closest_local = np.clip(sphere_center, -box_c.half_extents, box_c.half_extents)
    closest_world = _apply(box_matrix, closest_local, 1.0)
    delta = sphere_world - closest_world
    distance = float(np.linalg.norm(delta))
    radius = sphere_c.radius
    if distance >= radius:
        return None

    if distance < _EPSILON:
        penetration = box_c.half_extents - np.abs(sphere_center)
        local_normal = np.zeros(3)
        if penetration[0] < penetration[1] and penetration[0] < penetration[2]:
            axis = 0
        elif penetration[1] < penetration[2]:
            axis = 1
        else:
            axis = 2
        local_normal[axis] = 1.0 if sphere_center[axis] > 0 else -1.0
        normal = _normalize(_apply(box_matrix, local_normal, 0.0))
        depth = radius + float(np.linalg.norm(closest_world - sphere_world))
    else:
        normal = _normalize(delta)
        depth = radius - distance
    return _manifold(normal, closest_world + normal * radius, depth, sphere_c, box_c)


def sphere_vs_capsule(sphere_t: Transform, sphere_c: Collider,
                      capsule_t: Transform, capsule_c: Collider):
    base, top = capsule_endpoints(capsule_t, capsule_c)
    sphere_center = sphere_t.position + sphere_c.offset
    closest = closest_point_on_line_segment(sphere_center, base, top)
    delta = sphere_center - closest
    distance = float(np.linalg.norm(delta))
    combined_radius = sphere_c.radius + capsule_c.capsule_radius
    if distance >= combined_radius - _EPSILON:
        return None

    if distance < _EPSILON:
        segment = top - base
        seg_length = float(np.linalg.norm(segment))
        if seg_length < _EPSILON:
            normal = _normalize(sphere_center - base)
        else:
            segment = segment / seg_length
            to_sphere = sphere_center - base
            perpendicular = to_sphere - float(to_sphere @ segment) * segment
            if np.linalg.norm(perpendicular) > _EPSILON:
                normal = _normalize(perpendicular)
            else:
                arbitrary = np.array([0.0, 1.0, 0.0]) if abs(segment[0]) > 0.1 else np.array([1.0, 0.0, 0.0])
                normal = _normalize(np.cross(segment, arbitrary))
    else:
        normal = _normalize(delta)
    return _manifold(normal, closest + normal * capsule_c.capsule_radius,
                     combined_radius - distance, sphere_c, capsule_c)


def box_vs_capsule(box_t: Transform, box_c: Collider, capsule_t: Transform, capsule_c: Collider):
    base, top = capsule_endpoints(capsule_t, capsule_c)
    box_matrix = box_t.matrix()
    inv_box = np.linalg.inv(box_matrix)
    local_base = _apply(inv_box, base, 1.0)
    local_top = _apply(inv_box, top, 1.0)
    local_closest = closest_point_on_line_segment(np.zeros(3), local_base, local_top)
    box_closest = np.clip(local_closest, -box_c.half_extents, box_c.half_extents)
    world_box_closest = _apply(box_matrix, box_closest, 1.0)
    world_capsule_closest = _apply(box_matrix, local_closest, 1.0)
    delta = world_capsule_closest - world_box_closest
    dist = float(np.linalg.norm(delta))
    if dist < capsule_c.capsule_radius:
        normal = _normalize(delta)
        return _manifold(normal, world_box_closest + normal * capsule_c.capsule_radius,
                         capsule_c.capsule_radius - dist, box_c, capsule_c)
    return None


def capsule_vs_capsule(a_t: Transform, a_c: Collider, b_t: Transform, b_c: Collider):
    up = np.array([0.0, 1.0, 0.0])
    a_base = a_t.position + a_c.offset
    a_top = a_base + up * a_c.capsule_height
    b_base = b_t.position + b_c.offset
    b_top = b_base + up * b_c.capsule_height
    closest_a, closest_b = closest_points_between_lines(a_base, a_top, b_base, b_top)
    delta = closest_b - closest_a
    dist = float(np.linalg.norm(delta))
    combined_radius = a_c.capsule_radius + b_c.capsule_radius
    if dist < combined_radius:
        return _manifold(_normalize(delta), (closest_a + closest_b) * 0.5,
                         combined_radius - dist, a_c, b_c)
    return None


def box_vs_box(a_t: Transform, a_c: Collider, b_t: Transform, b_c: Collider):
    a_matrix = a_t.matrix()
    b_to_a = np.linalg.inv(a_matrix) @ b_t.matrix()
    b_rot = b_to_a[:3, :3]
    a_extents = a_c.half_extents
    b_extents = b_c.half_extents
    delta = b_to_a[:3, 3] - a_c.offset

    penetration = math.inf
    best_normal = np.zeros(3)

    def consider(overlap: float, normal: np.ndarray) -> bool:
        nonlocal penetration, best_normal
        if overlap < 0:
            return False
        if overlap < penetration:
            penetration = overlap
            best_normal = normal
        return True

    for i in range(3):
        b_proj = float(b_extents @ np.abs(b_rot[i, :]))
        overlap = a_extents[i] + b_proj - abs(delta[i])
        normal = np.zeros(3)
        normal[i] = 1.0 if delta[i] > 0 else -1.0
        if not consider(overlap, normal):
            return None

    for i in range(3):
        axis = _normalize(b_rot[:, i])
        proj_a = float(a_extents @ np.abs(axis))
        along = float(delta @ axis)
        overlap = proj_a + b_extents[i] - abs(along)
        if not consider(overlap, axis * (1.0 if along > 0 else -1.0)):
            return None

    for i, j in itertools.product(range(3), range(3)):
        axis_a = np.zeros(3)
        axis_a[i] = 1.0
        cross_axis = np.cross(axis_a, b_rot[:, j])
        length = float(np.linalg.norm(cross_axis))
        if length < _EPSILON:
            continue
        cross_axis = cross_axis / length
        a_proj = float(a_extents @ np.abs(cross_axis))
        b_proj = sum(b_extents[k] * abs(float(b_rot[:, k] @ cross_axis)) for k in range(3))
        along = float(delta @ cross_axis)
        overlap = a_proj + b_proj - abs(along)
        if not consider(overlap, cross_axis * (1.0 if along > 0 else -1.0)):
            return None

    if penetration < math.inf:
        normal = _normalize(_apply(a_matrix, best_normal, 0.0))
        a_center = a_t.position + a_c.offset
        b_center = b_t.position + b_c.offset
        return _manifold(normal, a_center + (b_center - a_center) * 0.5, penetration, a_c, b_c)
    return None


def collide(a_t: Transform, a_c: Collider, b_t: Transform, b_c: Collider):
    """Dispatch on both shapes; return a manifold, or None when apart."""
    s1, s2 = a_c.shape, b_c.shape
    if s1 is ShapeType.SPHERE:
        if s2 is ShapeType.SPHERE:
            return sphere_vs_sphere(a_t, a_c, b_t, b_c)
        if s2 is ShapeType.BOX:
            return sphere_vs_box(a_t, a_c, b_t, b_c)
        if s2 is ShapeType.CAPSULE:
            return sphere_vs_capsule(a_t, a_c, b_t, b_c)
    elif s1 is ShapeType.BOX:
        if s2 is ShapeType.SPHERE:
            return sphere_vs_box(b_t, b_c, a_t, a_c)
        if s2 is ShapeType.BOX:
            return box_vs_box(a_t, a_c, b_t, b_c)
        if s2 is ShapeType.CAPSULE:
            return box_vs_capsule(a_t, a_c, b_t, b_c)
    elif s1 is ShapeType.CAPSULE:
        if s2 is ShapeType.SPHERE:
            return sphere_vs_capsule(b_t, b_c, a_t, a_c)
        if s2 is ShapeType.BOX:
            return box_vs_capsule(b_t, b_c, a_t, a_c)
        if s2 is ShapeType.CAPSULE:
            return capsule_vs_capsule(a_t, a_c, b_t, b_c)
    return None


class CollisionSystem(PhysicsSubsystem):
    """Finds overlapping collider pairs and answers them with impulses."""

    priority = 1

    def __init__(self) -> None:
        self.collision_pairs: list[CollisionPair] = []

    def execution_priority(self) -> int:
        return self.priority

    def update(self, registry: Registry, dt: float) -> None:
        self.detect_collisions(registry)
        self.resolve_collisions(registry, dt)

    def detect_collisions(self, registry: Registry) -> None:
        self.collision_pairs = []
        rows = registry.view(Transform, Collider)
        for (ent_a, trans_a, coll_a), (ent_b, trans_b, coll_b) in itertools.combinations(rows, 2):
            if not coll_a.is_active or not coll_b.is_active:
                continue
            manifold = collide(trans_a, coll_a, trans_b, coll_b)
            if manifold is not None:
                self.collision_pairs.append(CollisionPair(ent_a, ent_b, manifold))

    def resolve_collisions(self, registry: Registry, dt: float) -> None:
        zero = np.zeros(3)
        for pair in self.collision_pairs:
            ent_a, ent_b, m = pair.entity_a, pair.entity_b, pair.manifold
            if registry.get(ent_a, Collider).is_trigger or registry.get(ent_b, Collider).is_trigger:
                continue
            rb_a = registry.try_get(ent_a, RigidBody)
            rb_b = registry.try_get(ent_b, RigidBody)
            trans_a = registry.get(ent_a, Transform)
            trans_b = registry.get(ent_b, Transform)
            n = m.normal

            r_a = m.contact_point - trans_a.position
            r_b = m.contact_point - trans_b.position
            vel_a = rb_a.linear_velocity + np.cross(rb_a.angular_velocity, r_a) if rb_a else zero
            vel_b = rb_b.linear_velocity + np.cross(rb_b.angular_velocity, r_b) if rb_b else zero
            rel_vel = vel_a - vel_b

            restitution = min(m.combined_restitution, 1.0)
            numerator = -(1.0 + restitution) * float(rel_vel @ n)
            inv_mass_a = 1.0 / rb_a.mass if rb_a and rb_a.mass > 0.0 else 0.0
            inv_mass_b = 1.0 / rb_b.mass if rb_b and rb_b.mass > 0.0 else 0.0
            cross_a = np.cross(r_a, n)
            cross_b = np.cross(r_b, n)
            inv_inertia_a = float(cross_a @ (rb_a.inv_inertia_tensor @ cross_a)) if rb_a else 0.0
            inv_inertia_b = float(cross_b @ (rb_b.inv_inertia_tensor @ cross_b)) if rb_b else 0.0
            denominator = inv_mass_a + inv_mass_b + inv_inertia_a + inv_inertia_b
            if denominator <= 0.0:
                continue
            impulse_magnitude = numerator / denominator
            impulse = impulse_magnitude * n

            if rb_a and rb_a.mass > 0.0:
                rb_a.linear_velocity = rb_a.linear_velocity + impulse * inv_mass_a
                rb_a.angular_velocity = rb_a.angular_velocity + rb_a.inv_inertia_tensor @ np.cross(r_a, impulse)
            if rb_b and rb_b.mass > 0.0:
                rb_b.linear_velocity = rb_b.linear_velocity - impulse * inv_mass_b
                rb_b.angular_velocity = rb_b.angular_velocity - rb_b.inv_inertia_tensor @ np.cross(r_b, impulse)

            tangent = rel_vel - float(rel_vel @ n) * n
            if np.linalg.norm(tangent) > 1e-6:
                tangent = _normalize(tangent)
                numerator = -float(rel_vel @ tangent)
                ang_a = rb_a.inv_inertia_tensor @ np.cross(r_a, tangent) if rb_a else zero
                ang_b = rb_b.inv_inertia_tensor @ np.cross(r_b, tangent) if rb_b else zero
                denominator = (
                    inv_mass_a
                    + inv_mass_b
                    + float(np.cross(ang_a, r_a) @ tangent)
                    + float(np.cross(ang_b, r_b) @ tangent)
                )
                if denominator <= 0:
                    continue
                jt = numerator / denominator
                mu = m.combined_friction
                jt = min(max(jt, -impulse_magnitude * mu), impulse_magnitude * mu)
                friction_impulse = jt * tangent
                if rb_a:
                    rb_a.linear_velocity = rb_a.linear_velocity + friction_impulse * inv_mass_a
                    rb_a.angular_velocity = rb_a.angular_velocity + rb_a.inv_inertia_tensor @ np.cross(
                        r_a, friction_impulse
                    )
                if rb_b:
                    rb_b.linear_velocity = rb_b.linear_velocity - friction_impulse * inv_mass_b
                    rb_b.angular_velocity = rb_b.angular_velocity - rb_b.inv_inertia_tensor @ np.cross(
                        r_b, friction_impulse
                    )

            total_inv_mass = inv_mass_a + inv_mass_b
            if total_inv_mass <= 0.0:
                continue
            correction = (
                _CORRECTION_FACTOR * max(m.penetration_depth - _SLOP, 0.0) / total_inv_mass * n
            )
            if rb_a and rb_a.mass > 0.0:
                trans_a.position = trans_a.position - correction * inv_mass_a
            if rb_b and rb_b.mass > 0.0:
                trans_b.position = trans_b.position + correction * inv_mass_b