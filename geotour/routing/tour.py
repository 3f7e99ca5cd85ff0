"""MST-based 2-approximation of the shortest closed tour.

Flow:
1) Walk the spanning tree in pre-order, repeating a vertex after each child
   subtree returns (every tree edge traversed twice).
2) Shortcut the walk: keep the first occurrence of each vertex.
3) Close the tour back at the start vertex.

The resulting cycle costs at most twice the optimum on metric inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .cost_matrix import cycle_cost
from .mst import SpanningTree


@dataclass(frozen=True)
class Cycle:
    vertices: Tuple[int, ...]
    cost: float

    @property
    def start(self) -> int:
        return self.vertices[0]

    def __len__(self) -> int:
        return len(self.vertices)

    def __str__(self) -> str:
        return " ".join(str(v) for v in self.vertices)


def preorder_walk(tree: SpanningTree, start: int) -> List[int]:
    """Full DFS edge traversal of `tree` rooted at `start`.

    For a tree with n vertices the walk has 2n - 1 entries.
    """
    walk: List[int] = [start]
    # (vertex, index of the next child to descend into)
    stack: List[Tuple[int, int]] = [(start, 0)]
    while stack:
        v, i = stack[-1]
        kids = tree.children.get(v, ())
        if i < len(kids):
            stack[-1] = (v, i + 1)
            child = kids[i]
            walk.append(child)
            stack.append((child, 0))
        else:
            stack.pop()
            if stack:
                walk.append(stack[-1][0])
    return walk


def shortcut(walk: Sequence[int]) -> List[int]:
    seen = set()
    out: List[int] = []
    for v in walk:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def approximate_cycle(tree: SpanningTree, cost_matrix: np.ndarray, start: int = 0) -> Cycle:
    """Hamiltonian cycle from the doubled spanning tree, e.g. (0, 3, 1, 2, 0)."""
    order = shortcut(preorder_walk(tree, start))
    order.append(start)
    return Cycle(vertices=tuple(order), cost=cycle_cost(order, cost_matrix))
