"""Prim's minimum spanning tree over a complete distance graph.

The builder owns one `VertexState` per vertex for the duration of a single
`build_spanning_tree` call. Two kinds of heaps are used:

- a global heap of reached-but-unvisited vertices, keyed on `best_cost`;
- one heap per vertex holding its current children, so a vertex can be
  detached from its old parent when a cheaper edge shows up.

Callers get back a frozen `SpanningTree`; the mutable states never leave
this module.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..records import InvalidInputError
from .cost_matrix import check_square
from .heap import MinHeap

logger = logging.getLogger(__name__)


class DisconnectedGraphError(RuntimeError):
    """Raised when some vertex cannot be reached from the start vertex."""


@dataclass
class VertexState:
    index: int
    best_cost: Optional[float] = None
    parent: Optional[int] = None


@dataclass(frozen=True)
class SpanningTree:
    root: int
    children: Dict[int, Tuple[int, ...]]
    parents: Tuple[Optional[int], ...]
    edge_costs: Tuple[float, ...]
    total_cost: float

    @property
    def size(self) -> int:
        return len(self.parents)

    def edges(self) -> List[Tuple[int, int]]:
        return [(p, v) for v, p in enumerate(self.parents) if p is not None]


def build_spanning_tree(cost_matrix: np.ndarray, start: int = 0) -> SpanningTree:
    """Run eager Prim from `start`.

    Args:
        cost_matrix: (n, n) symmetric cost matrix.
        start: Root vertex. Its cost is fixed at 0 and never updated.

    Raises:
        InvalidInputError: Empty / non-square matrix or bad start vertex.
        DisconnectedGraphError: If a vertex is never reached.

    Returns:
        SpanningTree whose children are ordered by ascending edge cost.
    """
    n, _ = check_square(cost_matrix)
    if n == 0:
        raise InvalidInputError("cannot build a spanning tree over zero vertices")
    if not 0 <= start < n:
        raise InvalidInputError(f"start vertex {start} out of range for {n} vertices")

    states = [VertexState(i) for i in range(n)]
    states[start].best_cost = 0.0

    child_heaps: Dict[int, MinHeap[VertexState]] = {i: MinHeap() for i in range(n)}
    queue: MinHeap[VertexState] = MinHeap()
    visited = [False] * n
    queue.insert(states[start])

    while not queue.is_empty():
        u = queue.extract_min()
        visited[u.index] = True

        for v in states:
            if visited[v.index]:
                continue
            d = float(cost_matrix[u.index, v.index])
            if math.isnan(d) or math.isinf(d):
                continue

            if v.best_cost is None:
                v.best_cost = d
                v.parent = u.index
                queue.insert(v)
                child_heaps[u.index].insert(v)
            elif d < v.best_cost:
                # detach before the key changes; both heaps are keyed on best_cost
                queue.remove(v)
                child_heaps[v.parent].remove(v)
                v.best_cost = d
                v.parent = u.index
                queue.insert(v)
                child_heaps[u.index].insert(v)

    unreached = [s.index for s in states if s.best_cost is None]
    if unreached:
        raise DisconnectedGraphError(f"vertices unreachable from {start}: {unreached}")

    children = {i: tuple(s.index for s in h.drain()) for i, h in child_heaps.items()}
    total = float(sum(s.best_cost for s in states))
    logger.debug("spanning tree over %d vertices, total cost %.3f", n, total)

    return SpanningTree(
        root=start,
        children=children,
        parents=tuple(s.parent for s in states),
        edge_costs=tuple(float(s.best_cost) for s in states),
        total_cost=total,
    )
