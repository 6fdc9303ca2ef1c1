import numpy as np

from tinysim.collider import Collider, ShapeType


def test_sequences_become_float_arrays():
    c = Collider(shape=ShapeType.BOX, half_extents=(4, 1, 4), offset=[0, 2, 0])
    assert c.half_extents.dtype == float
    assert np.array_equal(c.half_extents, [4.0, 1.0, 4.0])
    assert np.array_equal(c.offset, [0.0, 2.0, 0.0])


def test_instances_do_not_share_arrays():
    a = Collider()
    b = Collider()
    a.offset[1] = 3.0
    assert b.offset[1] == 0.0


def test_input_array_is_copied():
    source = np.array([1.0, 1.0, 1.0])
    c = Collider(half_extents=source)
    source[0] = 9.0
    assert c.half_extents[0] == 1.0


def test_shape_accepts_enum_value():
    c = Collider(shape=ShapeType.CAPSULE.value)
    assert c.shape is ShapeType.CAPSULE


def test_each_shape_is_kept_by_collider():
    shapes = [Collider(shape=s).shape for s in ShapeType]
    assert shapes == list(ShapeType)
    assert len(set(shapes)) == 3