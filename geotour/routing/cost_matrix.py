"""All-pairs planar distance matrix.

Contract:
- Entry (i, j) is the Euclidean distance between records i and j.
- Symmetric, zero diagonal, built once and read-only afterwards.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from ..records import InvalidInputError, Record, validate_records


def coords_of(records: Sequence[Record]) -> np.ndarray:
    return np.array([(float(r.x), float(r.y)) for r in records], dtype=float).reshape(-1, 2)


def build_cost_matrix(records: Sequence[Record]) -> np.ndarray:
    """Build the (n, n) cost matrix for `records`.

    Raises:
        InvalidInputError: If `records` is empty or a coordinate is unusable.
    """
    validate_records(records)
    xy = coords_of(records)

    # (a - b) ** 2 == (b - a) ** 2 exactly, so the result is symmetric bit for bit.
    diff = xy[:, None, :] - xy[None, :, :]
    mat = np.sqrt((diff**2).sum(axis=-1))
    np.fill_diagonal(mat, 0.0)

    mat.setflags(write=False)
    return mat


def cycle_cost(cycle: Sequence[int], cost_matrix: np.ndarray) -> float:
    """Sum of consecutive edge costs along `cycle` (already closed)."""
    cost = 0.0
    for a, b in zip(cycle[:-1], cycle[1:]):
        cost += float(cost_matrix[a, b])
    return cost


def check_square(cost_matrix: np.ndarray) -> Tuple[int, int]:
    shape = np.shape(cost_matrix)
    if len(shape) != 2 or shape[0] != shape[1]:
        raise InvalidInputError(f"cost matrix must be square, got shape {shape}")
    return shape
