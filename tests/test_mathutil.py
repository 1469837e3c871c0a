import pytest

from thera.mathutil import elementwise_max


def test_scalars():
    assert elementwise_max(1.5, 2.5) == 2.5
    assert elementwise_max(-1, -3) == -1


def test_vectors_take_componentwise_max():
    assert elementwise_max((1.0, 5.0), (3.0, 2.0)) == (3.0, 5.0)
    assert elementwise_max([0, -1, 4], [1, -2, 4]) == (1, -1, 4)


def test_result_dominates_both_inputs():
    a, b = (0.2, -7.0, 3.0), (0.1, 9.0, 3.5)
    result = elementwise_max(a, b)
    assert all(r >= x and r >= y for r, x, y in zip(result, a, b))
    assert all(r in (x, y) for r, x, y in zip(result, a, b))


def test_length_mismatch():
    with pytest.raises(ValueError):
        elementwise_max((1, 2), (1, 2, 3))


def test_mixed_scalar_and_vector():
    with pytest.raises(TypeError):
        elementwise_max(1.0, (1.0, 2.0))