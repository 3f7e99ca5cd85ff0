"""Exhaustive search for the cheapest closed tour.

Every ordering of the non-start vertices is costed; there is no pruning of
partial tours, so this is only usable for small inputs (O((n-1)!) time).
Bounding `n` is the caller's job.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..records import InvalidInputError
from .cost_matrix import check_square, cycle_cost
from .tour import Cycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExactResult:
    cycle: Cycle
    permutations_evaluated: int
    improved: bool


def solve_exact(
    cost_matrix: np.ndarray,
    start: int = 0,
    initial: Optional[Cycle] = None,
) -> ExactResult:
    """Find a minimum-cost cycle through every vertex, fixed at `start`.

    Args:
        cost_matrix: (n, n) cost matrix.
        start: First and last vertex of every evaluated cycle.
        initial: Best-known cycle to beat (usually the MST approximation).
            A candidate replaces the running best only if strictly cheaper.

    Returns:
        ExactResult with the optimal cycle and the number of permutations costed.
    """
    n, _ = check_square(cost_matrix)
    if n == 0:
        raise InvalidInputError("cannot search tours over zero vertices")
    if not 0 <= start < n:
        raise InvalidInputError(f"start vertex {start} out of range for {n} vertices")

    best = initial
    rest = [v for v in range(n) if v != start]

    # permutations() yields in choice-without-replacement order over `rest`
    count = 0
    improved = False
    for perm in itertools.permutations(rest):
        candidate = (start, *perm, start)
        cost = cycle_cost(candidate, cost_matrix)
        count += 1
        if best is None or cost < best.cost:
            if best is not None:
                improved = True
            best = Cycle(vertices=candidate, cost=cost)

    logger.debug("exact search costed %d permutations (best %.3f)", count, best.cost)
    return ExactResult(cycle=best, permutations_evaluated=count, improved=improved)
