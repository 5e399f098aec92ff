"""
Channel simulators for fountain testing.

Includes a simple burst eraser, a Gilbert-Elliott two-state channel model and
a reordering channel that can also repeat frames, the way a camera sees the
same code several times in a row.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def burst_eraser(
    symbols: Sequence[T],
    loss_rate: float = 0.2,
    burst_len: int = 5,
    rng: Optional[random.Random] = None,
) -> List[T]:
    """Simulate random bursts of erasures over the symbol list.

    loss_rate controls how often a burst begins; burst_len controls the
    maximum length of each burst.
    """
    rng = rng or random.Random()
    n = len(symbols)
    keep = []
    i = 0
    while i < n:
        if rng.random() < loss_rate:
            # drop a burst
            i += rng.randint(1, burst_len)
        else:
            keep.append(symbols[i])
            i += 1
    return keep


def gilbert_elliott_eraser(
    symbols: Sequence[T],
    p: float = 0.05,
    r: float = 0.25,
    good_loss: float = 0.0,
    bad_loss: float = 0.8,
    start_state: str = "good",
    rng: Optional[random.Random] = None,
) -> List[T]:
    """Gilbert-Elliott channel eraser.

    - p: Probability to transition Good -> Bad each step
    - r: Probability to transition Bad -> Good each step
    - good_loss: Erasure probability in Good state
    - bad_loss: Erasure probability in Bad state
    - start_state: "good" or "bad"
    """
    rng = rng or random.Random()
    bad = not start_state.lower().startswith("g")
    out = []
    for sym in symbols:
        loss = bad_loss if bad else good_loss
        if rng.random() >= loss:
            out.append(sym)
        if bad:
            if rng.random() < r:
                bad = False
        elif rng.random() < p:
            bad = True
    return out


def reorder(
    symbols: Sequence[T],
    duplicate_rate: float = 0.0,
    rng: Optional[random.Random] = None,
) -> List[T]:
    """Shuffle symbols, optionally repeating some of them back to back."""
    rng = rng or random.Random()
    out: List[T] = []
    for sym in symbols:
        out.append(sym)
        if rng.random() < duplicate_rate:
            out.append(sym)
    rng.shuffle(out)
    return out


__all__ = ["burst_eraser", "gilbert_elliott_eraser", "reorder"]
