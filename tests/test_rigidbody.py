import numpy as np
import pytest

from tinysim.rigidbody import RigidBody


def test_static_body_has_zero_inverse_inertia():
    body = RigidBody()
    body.set_mass(0.0)
    assert np.array_equal(body.inv_inertia_tensor, np.zeros((3, 3)))


def test_singular_inertia_gives_zero_inverse():
    body = RigidBody()
    body.set_inertia_tensor(np.diag([1.0, 0.0, 1.0]))
    assert np.array_equal(body.inv_inertia_tensor, np.zeros((3, 3)))


def test_inverse_inertia_inverts_tensor():
    body = RigidBody()
    body.set_inertia_tensor(np.diag([2.0, 4.0, 8.0]))
    assert np.allclose(body.inv_inertia_tensor @ body.inertia_tensor, np.eye(3))


def test_gravity_integration_resets_accumulators():
    body = RigidBody(mass=2.0)
    gravity = np.array([0.0, -9.8, 0.0])
    dt = 0.1
    body.add_force((1.0, 0.0, 0.0))
    body.integrate(dt, gravity)
    assert np.allclose(body.linear_velocity, (gravity + np.array([1.0, 0, 0]) / 2.0) * dt)
    assert np.array_equal(body.force_accumulator, np.zeros(3))
    assert np.array_equal(body.torque_accumulator, np.zeros(3))


def test_kinematic_body_does_not_move():
    body = RigidBody(is_kinematic=True)
    body.add_force((5.0, 0.0, 0.0))
    body.integrate(0.1, (0, -9.8, 0))
    assert np.array_equal(body.linear_velocity, np.zeros(3))
    assert np.array_equal(body.force_accumulator, [5.0, 0.0, 0.0])


def test_linear_damping_scales_velocity():
    body = RigidBody(linear_velocity=(2.0, 0.0, 0.0), linear_damping=0.5, use_gravity=False)
    body.integrate(0.1, (0, 0, 0))
    assert body.linear_velocity[0] == pytest.approx(2.0 * (1.0 - 0.5 * 0.1))


def test_frozen_axes_stay_still():
    body = RigidBody(freeze_position=(False, True, False))
    body.add_force((1.0, 1.0, 1.0))
    body.integrate(0.5, (0, -9.8, 0))
    assert body.linear_velocity[1] == 0.0
    assert body.linear_velocity[0] > 0.0


def test_force_at_position_produces_torque():
    body = RigidBody()
    body.add_force_at_position((0.0, 0.0, 1.0), (1.0, 0.0, 0.0))
    assert np.allclose(body.torque_accumulator, [0.0, -1.0, 0.0])
    assert np.allclose(body.force_accumulator, [0.0, 0.0, 1.0])


def test_torque_spins_body():
    body = RigidBody(use_gravity=False)
    body.add_torque((0.0, 3.0, 0.0))
    body.integrate(0.2, (0, 0, 0))
    assert np.allclose(body.angular_velocity, [0.0, 3.0 * 0.2, 0.0])