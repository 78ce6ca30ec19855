"""Helpers shared by the match models."""
from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, List, Optional, Sequence, TypeVar, Union

T = TypeVar('T')


def make_rng(seed: Optional[Union[int, str]] = None) -> random.Random:
    """
    Create a match-owned random stream.

    Args:
        seed: Seed for reproducibility (None = OS entropy)

    Returns:
        A fresh ``random.Random`` instance, never the module-level one
    """
    return random.Random(seed)


def clamp(value: float, min_val: float = 0.0, max_val: float = 1.0) -> float:
    return max(min_val, min(max_val, value))


def clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else (1.0 if x > 1.0 else x)


@dataclass(frozen=True)
class WeightedDraw(Generic[T]):
    """Result of a weighted categorical draw, kept for tracing."""
    chosen: T
    roll: float
    probabilities: Dict[Hashable, float]


def weighted_choice(
    rng: random.Random,
    candidates: Sequence[T],
    weights: Sequence[float],
    key: Callable[[T], Hashable] = lambda c: c,  # type: ignore[assignment,return-value]
) -> Optional[WeightedDraw[T]]:
    """
    Weighted categorical draw over eligible candidates.

    Negative weights are clamped to zero and zero-weight candidates are not
    eligible. Candidates are ordered by ``key`` before drawing so the result
    does not depend on the caller's ordering. Exactly one ``rng.random()`` is
    consumed when something is eligible; nothing otherwise.

    Returns:
        The draw, or None when no candidate is eligible
    """
    if len(candidates) != len(weights):
        raise ValueError("candidates and weights differ in length")
    pool = sorted(
        ((c, max(0.0, float(w))) for c, w in zip(candidates, weights) if w > 0),
        key=lambda cw: key(cw[0]),
    )
    if not pool:
        return None
    total = sum(w for _, w in pool)
    roll = rng.random()
    threshold = roll * total
    chosen = pool[-1][0]
    acc = 0.0
    for c, w in pool:
        acc += w
        if threshold < acc:
            chosen = c
            break
    probabilities = {key(c): w / total for c, w in pool}
    return WeightedDraw(chosen=chosen, roll=roll, probabilities=probabilities)


def pick_extreme(items: Sequence[T], score: Callable[[T], float], key: Callable[[T], Hashable]) -> Optional[T]:
    """Highest-scoring item; ties go to the smallest ``key``."""
    if not items:
        return None
    ordered: List[T] = sorted(items, key=lambda it: (-score(it), key(it)))
    return ordered[0]
