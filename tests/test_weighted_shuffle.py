import random

import pytest

from alpenglow.weighted_shuffle import WeightedShuffle


@pytest.mark.parametrize("count", [0, 1, 5, 16, 17, 300, 5000])
def test_shuffle_is_permutation(count):
    rng = random.Random(count)
    weights = [rng.randrange(1, 100) for _ in range(count)]
    result = list(WeightedShuffle(weights).shuffle(random.Random(1)))
    assert sorted(result) == list(range(count))


def test_zero_weights_come_last():
    weights = [0, 5, 0, 3, 0, 1, 7]
    result = list(WeightedShuffle(weights).shuffle(random.Random(3)))
    assert set(result[:4]) == {1, 3, 5, 6}
    assert set(result[4:]) == {0, 2, 4}


def test_negative_weights_treated_as_zero():
    result = list(WeightedShuffle([-4, 2]).shuffle(random.Random(0)))
    assert result == [1, 0]


def test_overflowing_weight_treated_as_zero():
    result = list(WeightedShuffle([2**64 - 1, 5]).shuffle(random.Random(0)))
    assert result == [0, 1]


def test_all_zero_weights_still_shuffled():
    result = list(WeightedShuffle([0] * 50).shuffle(random.Random(7)))
    assert sorted(result) == list(range(50))


def test_deterministic_for_same_seed():
    weights = [random.Random(9).randrange(1, 1000) for _ in range(400)]
    first = list(WeightedShuffle(weights).shuffle(random.Random(42)))
    second = list(WeightedShuffle(weights).shuffle(random.Random(42)))
    assert first == second


def test_dominant_weight_comes_first():
    weights = [1] * 200
    weights[123] = 10**15
    result = list(WeightedShuffle(weights).shuffle(random.Random(5)))
    assert result[0] == 123


def test_heavier_index_first_more_often():
    rng = random.Random(11)
    firsts = [next(WeightedShuffle([1, 9]).shuffle(rng)) for _ in range(2000)]
    assert firsts.count(1) > firsts.count(0) * 4


def test_shuffle_consumes_state():
    ws = WeightedShuffle([3, 1, 2])
    rng = random.Random(0)
    taken = list(ws.shuffle(rng))
    assert sorted(taken) == [0, 1, 2]
    assert list(ws.shuffle(rng)) == []