import numpy as np
import pytest

from tinysim.ecs import Registry
from tinysim.rigidbody import RigidBody
from tinysim.rigidbody_system import RigidBodySystem
from tinysim.transform import Transform


def _body(registry, **kwargs):
    entity = registry.create()
    transform = registry.emplace(entity, Transform())
    body = registry.emplace(entity, RigidBody(**kwargs))
    return transform, body


def test_gravity_moves_dynamic_body():
    registry = Registry()
    transform, body = _body(registry)
    system = RigidBodySystem(gravity=(0.0, -10.0, 0.0))
    system.update(registry, 0.5)
    np.testing.assert_allclose(body.linear_velocity, [0.0, -5.0, 0.0])
    np.testing.assert_allclose(transform.position, [0.0, -2.5, 0.0])


def test_default_gravity_points_down():
    registry = Registry()
    transform, body = _body(registry)
    RigidBodySystem().update(registry, 0.1)
    assert body.linear_velocity[1] < 0.0
    assert transform.position[1] < 0.0
    assert transform.position[0] == 0.0
    assert transform.position[2] == 0.0


@pytest.mark.parametrize("kwargs", [{"mass": 0.0}, {"is_kinematic": True}])
def test_static_and_kinematic_bodies_do_not_move(kwargs):
    registry = Registry()
    transform, body = _body(registry, **kwargs)
    body.add_force((5.0, 0.0, 0.0))
    RigidBodySystem().update(registry, 0.1)
    np.testing.assert_allclose(transform.position, np.zeros(3))
    np.testing.assert_allclose(body.force_accumulator, [5.0, 0.0, 0.0])


def test_body_without_gravity_keeps_velocity():
    registry = Registry()
    transform, body = _body(registry, use_gravity=False, linear_velocity=(1.0, 2.0, 3.0))
    RigidBodySystem().integrate_forces(registry, 0.5)
    np.testing.assert_allclose(body.linear_velocity, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(transform.position, [0.5, 1.0, 1.5])


def test_angular_velocity_turns_about_its_axis():
    registry = Registry()
    transform, _ = _body(registry, use_gravity=False, angular_velocity=(0.0, 1.0, 0.0))
    dt = 0.01
    RigidBodySystem().update(registry, dt)
    assert transform.rotation[1] == pytest.approx(dt, rel=1e-3)
    assert transform.rotation[0] == pytest.approx(0.0, abs=1e-12)
    assert transform.rotation[2] == pytest.approx(0.0, abs=1e-12)


def test_entities_without_rigidbody_are_ignored():
    registry = Registry()
    entity = registry.create()
    transform = registry.emplace(entity, Transform(position=(1.0, 1.0, 1.0)))
    RigidBodySystem().update(registry, 1.0)
    np.testing.assert_allclose(transform.position, [1.0, 1.0, 1.0])


def test_runs_before_other_subsystems():
    assert RigidBodySystem().execution_priority() < 1