import pytest

from thera.bimap import UnorderedBimap


@pytest.fixture
def bimap():
    return UnorderedBimap([(1, "Scalar"), (2, "Vector2"), (3, "Vector3")])


def test_lookup_both_directions(bimap):
    assert bimap.by_left(2) == "Vector2"
    assert bimap.by_right("Vector3") == 3


def test_at_dispatches_by_side(bimap):
    assert bimap.at(1) == "Scalar"
    assert bimap.at("Scalar") == 1


def test_round_trip_for_every_pair(bimap):
    for left in (1, 2, 3):
        assert bimap.by_right(bimap.by_left(left)) == left


def test_missing_keys_raise(bimap):
    with pytest.raises(KeyError):
        bimap.by_left(9)
    with pytest.raises(KeyError):
        bimap.by_right("Missing")
    with pytest.raises(KeyError):
        bimap.at("Missing")


def test_later_pairs_overwrite_earlier():
    bimap = UnorderedBimap([("a", 1), ("a", 2)])
    assert bimap.by_left("a") == 2
    assert bimap.by_right(2) == "a"