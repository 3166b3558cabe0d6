import pytest

from backpropnet.core import rng as rng_module
from backpropnet.core.rng import make_rng, rand_int, resolve_seed, shuffle_in_place


def test_explicit_seed_is_kept():
    assert resolve_seed(42) == 42


@pytest.mark.parametrize("now, expected", [(20000.7, 1), (29999.0, 10000), (12345.0, 2346)])
def test_clock_seed_is_never_zero(monkeypatch, now, expected):
    monkeypatch.setattr(rng_module.time, "time", lambda: now)
    assert resolve_seed(0) == expected


def test_rand_int_is_inclusive():
    rng = make_rng(1)
    draws = {rand_int(rng, -1, 1) for _ in range(200)}
    assert draws == {-1, 0, 1}
    with pytest.raises(ValueError):
        rand_int(rng, 2, 1)


def test_shuffle_is_a_permutation():
    values = list(range(10))
    shuffle_in_place(values, make_rng(3))
    assert sorted(values) == list(range(10))
