"""Per-run KPIs.

Important: these KPIs are used to compare runs, so they must be
pure/deterministic given the tour result (runtime aside).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from .config import ConfigError

if TYPE_CHECKING:
    from .pipeline import TourResult


def compute_summary(result: "TourResult", *, scale: float = 1.0, unit: str = "units") -> Dict[str, object]:
    """Summarize one optimization run.

    Costs are reported in planar units and, scaled, in `unit`.
    `approx_ratio` is heuristic / optimal (1.0 when both are zero, None when
    the exact search was skipped).
    """
    if scale <= 0:
        raise ConfigError(f"cost scale must be > 0 (got {scale})")

    h = result.heuristic.cost
    opt = result.optimal.cost if result.optimal is not None else None

    if opt is None:
        ratio = None
    elif opt == 0.0:
        ratio = 1.0
    else:
        ratio = float(h / opt)

    return {
        "n_vertices": int(result.tree.size),
        "tree_cost": float(result.tree.total_cost),
        "heuristic_cost": float(h),
        "optimal_cost": None if opt is None else float(opt),
        f"heuristic_{unit}": float(h * scale),
        f"optimal_{unit}": None if opt is None else float(opt * scale),
        "approx_ratio": ratio,
        "permutations_evaluated": int(result.permutations_evaluated),
        "exact_skipped": result.optimal is None,
        "heuristic_route": ",".join(map(str, result.heuristic.vertices)),
        "optimal_route": "" if result.optimal is None else ",".join(map(str, result.optimal.vertices)),
        "runtime_total_sec": float(result.runtime_sec),
    }
