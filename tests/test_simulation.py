import numpy as np
import pytest

from tinysim.cloth import Cloth
from tinysim.collider import Collider, ShapeType
from tinysim.collision import CollisionSystem
from tinysim.ecs import Registry
from tinysim.pbd_cloth import PBDClothSystem
from tinysim.rigidbody import RigidBody
from tinysim.rigidbody_system import RigidBodySystem
from tinysim.simulation import build_physics, create_scene, main, run
from tinysim.transform import Transform


def test_create_scene_components():
    registry = Registry()
    entities = create_scene(registry, 2)
    assert set(entities) == {"model", "ground", "cloth"}

    model_collider = registry.get(entities["model"], Collider)
    assert model_collider.shape is ShapeType.CAPSULE
    assert model_collider.capsule_height == 3.4
    assert registry.get(entities["model"], RigidBody).mass == 0.0

    ground_collider = registry.get(entities["ground"], Collider)
    assert ground_collider.shape is ShapeType.BOX
    np.testing.assert_allclose(ground_collider.half_extents, [4.0, 0.1, 4.0])
    assert registry.try_get(entities["ground"], RigidBody) is None


def test_cloth_is_pinned_at_two_corners():
    registry = Registry()
    entities = create_scene(registry, 3)
    cloth = registry.get(entities["cloth"], Cloth)
    assert len(cloth.positions) == 16
    assert np.flatnonzero(cloth.fixed_vertices).tolist() == [0, 3]
    np.testing.assert_allclose(cloth.positions[:, 1], 10.0)


def test_build_physics_order():
    physics = build_physics()
    kinds = [type(s) for s in physics.subsystems]
    assert kinds == [RigidBodySystem, CollisionSystem, PBDClothSystem]


def test_run_cloth_falls_while_pins_hold():
    registry, entities = run(steps=5, dt=0.02, cloth_resolution=3)
    cloth = registry.get(entities["cloth"], Cloth)
    np.testing.assert_allclose(cloth.positions[0], [-5.0, 10.0, -5.0])
    np.testing.assert_allclose(cloth.positions[3], [5.0, 10.0, -5.0])
    free = ~cloth.fixed_vertices
    assert np.all(cloth.positions[free, 1] < 10.0)


def test_run_keeps_static_model_in_place():
    registry, entities = run(steps=3, dt=0.02, cloth_resolution=2)
    transform = registry.get(entities["model"], Transform)
    np.testing.assert_allclose(transform.position, np.zeros(3))


def test_run_zero_steps_leaves_scene_untouched():
    registry, entities = run(steps=0, cloth_resolution=2)
    cloth = registry.get(entities["cloth"], Cloth)
    np.testing.assert_allclose(cloth.velocities, 0.0)


@pytest.mark.parametrize("kwargs", [{"steps": -1}, {"dt": 0.0}])
def test_run_rejects_bad_arguments(kwargs):
    with pytest.raises(ValueError):
        run(cloth_resolution=2, **kwargs)


def test_main_prints_summary(capsys):
    assert main(["--steps", "2", "--resolution", "2"]) == 0
    out = capsys.readouterr().out
    assert "steps: 2" in out
    assert "cloth lowest y:" in out


def test_main_rejects_negative_steps():
    with pytest.raises(SystemExit):
        main(["--steps", "-3", "--resolution", "2"])