import math

import pytest

from thera.physics import Body, Hit, Vector, aabb_overlap, normalize, reflect


def test_vector_arithmetic_round_trip():
    a = Vector(1.5, -2.0, 3.0)
    b = Vector(0.5, 4.0, -1.0)
    assert (a + b) - b == a
    assert -(-a) == a
    assert 2 * a == a * 2
    assert tuple(a) == (1.5, -2.0, 3.0)


def test_vector_dot_is_symmetric():
    a = Vector(1.0, 2.0, 3.0)
    b = Vector(-4.0, 0.5, 2.0)
    assert a.dot(b) == b.dot(a)


@pytest.mark.parametrize(
    "vector", [Vector(3, 4, 0), Vector(-1, 1, 1), Vector(0, 0, -7), Vector(0.1, 0.2, 0.3)]
)
def test_normalize_gives_unit_length_same_direction(vector):
    unit = normalize(vector)
    assert math.isclose(unit.length(), 1.0)
    assert unit.dot(vector) > 0


def test_normalize_zero_raises():
    with pytest.raises(ValueError):
        normalize(Vector())


def test_reflect_flips_normal_component():
    assert reflect(Vector(3, -4, 0), Vector(0, 1, 0)) == Vector(3, 4, 0)


def test_reflect_preserves_speed():
    velocity = Vector(2.0, -5.0, 1.0)
    reflected = reflect(velocity, Vector(1, 0, 0))
    assert math.isclose(reflected.length(), velocity.length())
    assert reflect(reflected, Vector(1, 0, 0)) == velocity


def test_separated_boxes_do_not_overlap():
    a = Body(Vector(0, 0, 0), Vector(1, 1, 1))
    b = Body(Vector(5, 0, 0), Vector(1, 1, 1))
    assert aabb_overlap(a, b) is None


def test_touching_boxes_do_not_overlap():
    a = Body(Vector(0, 0, 0), Vector(1, 1, 1))
    b = Body(Vector(2, 0, 0), Vector(1, 1, 1))
    assert aabb_overlap(a, b) is None


def test_shallow_x_overlap_gives_x_normal_towards_a():
    paddle = Body(Vector(-29, 0, 0), Vector(1, 4, 1))
    ball = Body(Vector(-27.5, 0, 0), Vector(1, 1, 1))
    assert aabb_overlap(paddle, ball) == Hit(Vector(-1, 0, 0))


def test_shallow_y_overlap_gives_y_normal_towards_a():
    border = Body(Vector(0, 22.5, 0), Vector(60, 1, 1))
    ball = Body(Vector(0, 21, 0), Vector(1, 1, 1))
    assert aabb_overlap(border, ball) == Hit(Vector(0, 1, 0))


def test_body_bounds_surround_position():
    body = Body(Vector(1, 2, 3), Vector(1, 4, 1))
    assert body.minimum + body.extents == body.position
    assert body.maximum - body.extents == body.position