import numpy as np
import pytest

from balance_engine.common.geometry import Vector3


def test_vector_arithmetic():
    a = Vector3(x=1.0, y=2.0, z=3.0)
    b = Vector3(x=0.5, y=-1.0, z=2.0)

    assert a + b == Vector3(x=1.5, y=1.0, z=5.0)
    assert a - b == Vector3(x=0.5, y=3.0, z=1.0)
    assert a * 2 == Vector3(x=2.0, y=4.0, z=6.0)
    assert 2 * a == a * 2
    assert (a / 2).is_close(Vector3(x=0.5, y=1.0, z=1.5))


def test_ground_projection_drops_vertical_axis():
    point = Vector3(x=4.0, y=120.0, z=-7.0)
    np.testing.assert_allclose(point.ground(), [4.0, -7.0])


def test_array_round_trip_and_zero():
    assert Vector3.from_array(np.array([1.0, 2.0, 3.0])) == Vector3(x=1.0, y=2.0, z=3.0)
    assert Vector3.zero().to_array().tolist() == [0.0, 0.0, 0.0]


def test_vector_is_immutable():
    point = Vector3(x=1.0)
    with pytest.raises(Exception):
        point.x = 2.0


def test_is_finite():
    assert Vector3(x=1.0, y=2.0, z=3.0).is_finite()
    assert not Vector3(y=float("nan")).is_finite()
    assert not Vector3(z=float("-inf")).is_finite()
