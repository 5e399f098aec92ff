import math
import random
from collections import Counter

import pytest

from qrdrop.config import CodecConfig
from qrdrop.fountain.degree import (
    RobustSolitonDegreeStrategy,
    SmallBlockDegreeStrategy,
    make_degree_sampler,
)


@pytest.mark.parametrize("k", [10, 37, 100, 1000])
def test_robust_soliton_cdf_is_a_distribution(k):
    strategy = RobustSolitonDegreeStrategy(k)
    assert len(strategy.cdf) == k
    assert strategy.cdf[-1] == 1.0
    assert all(a <= b for a, b in zip(strategy.cdf, strategy.cdf[1:]))
    assert math.isclose(sum(strategy.probabilities()), 1.0)


def test_robust_soliton_samples_stay_in_range():
    rng = random.Random(0)
    strategy = RobustSolitonDegreeStrategy(50)
    degrees = [strategy.sample(rng) for _ in range(5000)]
    assert min(degrees) >= 1
    assert max(degrees) <= 50
    counts = Counter(degrees)
    # degree 2 carries the most mass of the ideal soliton
    assert counts[2] > counts[10]


def test_robust_soliton_spike_at_threshold():
    k, c, delta = 1000, 0.1, 0.5
    strategy = RobustSolitonDegreeStrategy(k, c=c, delta=delta)
    R = c * math.log(k / delta) * math.sqrt(k)
    threshold = int(k / R)
    probs = strategy.probabilities()
    assert probs[threshold - 1] > probs[threshold - 2]
    assert probs[threshold - 1] > probs[threshold]


def test_single_block():
    rng = random.Random(1)
    assert RobustSolitonDegreeStrategy(1).sample(rng) == 1
    assert SmallBlockDegreeStrategy(1).sample(rng) == 1


def test_small_block_strategy_range_and_bias():
    rng = random.Random(3)
    strategy = SmallBlockDegreeStrategy(8)
    degrees = [strategy.sample(rng) for _ in range(4000)]
    assert set(degrees) <= set(range(1, 9))
    low = sum(1 for d in degrees if d <= 2) / len(degrees)
    # 0.6 + 0.4 * 2/8 expected
    assert 0.6 < low < 0.8


def test_invalid_k():
    with pytest.raises(ValueError):
        SmallBlockDegreeStrategy(0)
    with pytest.raises(ValueError):
        RobustSolitonDegreeStrategy(0)


def test_sampler_selection_follows_threshold():
    assert isinstance(make_degree_sampler(9), SmallBlockDegreeStrategy)
    assert isinstance(make_degree_sampler(10), RobustSolitonDegreeStrategy)

    config = CodecConfig(small_k_threshold=20, soliton_c=0.1, soliton_delta=0.05)
    assert isinstance(make_degree_sampler(15, config), SmallBlockDegreeStrategy)
    sampler = make_degree_sampler(20, config)
    assert sampler.c == 0.1
    assert sampler.delta == 0.05
