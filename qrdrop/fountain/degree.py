"""
Degree sampling for LT packets.

Two strategies sit behind one ``sample(rng)`` interface. Transfers with fewer
than ``small_k_threshold`` source blocks use a simple split that keeps most
packets at degree 1-2; larger transfers use the robust soliton distribution.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional, Protocol

from ..config import CodecConfig


class DegreeSampler(Protocol):
    k: int

    def sample(self, rng: random.Random) -> int:
        ...


class SmallBlockDegreeStrategy:
    """Split for small ``k``: 60% uniform over {1, 2}, 40% uniform over [1, k]."""

    low_degree_share = 0.6

    def __init__(self, k: int):
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k

    def sample(self, rng: random.Random) -> int:
        if self.k <= 1:
            return 1
        if rng.random() < self.low_degree_share:
            return rng.randint(1, 2)
        return rng.randint(1, self.k)


class RobustSolitonDegreeStrategy:
    """Sample degrees from a pre-computed robust soliton CDF."""

    def __init__(self, k: int, c: float = 0.03, delta: float = 0.5):
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.c = c
        self.delta = delta
        self.cdf = self._build_robust_soliton_cdf()

    def _build_robust_soliton_cdf(self) -> List[float]:
        """Pre-compute cumulative distribution for the robust soliton distribution."""
        k = self.k
        if k <= 1:
            return [1.0]

        c = max(self.c, 1e-6)
        delta = min(max(self.delta, 1e-6), 0.999999)

        R = c * math.log(k / delta) * math.sqrt(k)
        if R < 1.0:
            R = 1.0

        threshold = int(k / R)
        rho = [0.0] * k
        tau = [0.0] * k

        rho[0] = 1.0 / k
        for d in range(2, k + 1):
            rho[d - 1] = 1.0 / (d * (d - 1))

        if threshold >= 1:
            for d in range(1, min(threshold, k)):
                tau[d - 1] = R / (d * k)
            tau[threshold - 1] = R * math.log(R / delta) / k

        total = sum(rho[i] + tau[i] for i in range(k))
        cumulative = []
        running = 0.0
        for i in range(k):
            running += (rho[i] + tau[i]) / total
            cumulative.append(running)

        cumulative[-1] = 1.0  # guarantee final value hits 1
        return cumulative

    def probabilities(self) -> List[float]:
        """Per-degree probabilities, index 0 holding degree 1."""
        return [b - a for a, b in zip([0.0] + self.cdf[:-1], self.cdf)]

    def sample(self, rng: random.Random) -> int:
        if self.k <= 1:
            return 1
        r = rng.random()
        for degree, cutoff in enumerate(self.cdf, start=1):
            if r <= cutoff:
                return degree
        return self.k


def make_degree_sampler(k: int, config: Optional[CodecConfig] = None) -> DegreeSampler:
    """Pick the sampling strategy for ``k`` source blocks."""
    config = config or CodecConfig()
    if k < config.small_k_threshold:
        return SmallBlockDegreeStrategy(k)
    return RobustSolitonDegreeStrategy(
        k, c=config.soliton_c, delta=config.soliton_delta
    )


__all__ = [
    "DegreeSampler",
    "SmallBlockDegreeStrategy",
    "RobustSolitonDegreeStrategy",
    "make_degree_sampler",
]
