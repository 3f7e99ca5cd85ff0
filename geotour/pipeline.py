"""Tour optimization pipeline.

Flow:
1) Load records and keep the requested date range
2) Build the cost matrix
3) Prim spanning tree -> pre-order walk -> approximate tour
4) Exhaustive search seeded with the approximate tour
5) Emit artifacts:
   - tour.kml     (both tours as line strings)
   - tour.json    (vertex sequences + costs)
   - metrics.csv  (one-row KPI table)
   - results log  (optional sink shared across test cases)

Record 0 of the filtered set is the fixed start/end of every tour.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .config import ConfigError, TourConfig, save_json, section
from .metrics import compute_summary
from .records import (
    DEFAULT_DATE_FORMAT,
    InvalidInputError,
    Record,
    filter_by_date,
    load_records,
    to_records,
    validate_records,
)
from .render import ResultsLog, render_kml, save_kml
from .routing.cost_matrix import build_cost_matrix
from .routing.exact import solve_exact
from .routing.mst import SpanningTree, build_spanning_tree
from .routing.tour import Cycle, approximate_cycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TourResult:
    cost_matrix: np.ndarray
    tree: SpanningTree
    heuristic: Cycle
    optimal: Optional[Cycle]
    permutations_evaluated: int
    runtime_sec: float


def optimize(
    records: Sequence[Record],
    *,
    start: int = 0,
    max_exact_vertices: Optional[int] = None,
) -> TourResult:
    """Approximate, then (if small enough) exactly solve the tour over `records`.

    Args:
        records: Already-filtered records; `records[start]` is the start/end.
        start: Start vertex index.
        max_exact_vertices: Skip the exhaustive search above this many
            vertices (None = always run it).

    Raises:
        InvalidInputError: Before any work, for an empty set or bad coordinates.
    """
    t0 = time.time()
    validate_records(records)

    mat = build_cost_matrix(records)
    tree = build_spanning_tree(mat, start)
    heuristic = approximate_cycle(tree, mat, start)
    logger.info("Hamiltonian cycle (not necessarily optimal): %s", heuristic)

    n = len(records)
    if max_exact_vertices is not None and n > max_exact_vertices:
        logger.warning(
            "Skipping exhaustive search: %d vertices > max_exact_vertices=%d", n, max_exact_vertices
        )
        optimal = None
        perms = 0
    else:
        logger.info("Looking at every permutation to find the optimal solution")
        exact = solve_exact(mat, start, heuristic)
        optimal = exact.cycle
        perms = exact.permutations_evaluated
        logger.info("Total permutations: %d", perms)
        logger.info("Optimal cycle: %s", optimal)

    return TourResult(
        cost_matrix=mat,
        tree=tree,
        heuristic=heuristic,
        optimal=optimal,
        permutations_evaluated=perms,
        runtime_sec=float(time.time() - t0),
    )


def select_records(cfg: dict, start_date: date, end_date: date, *, csv_path: Optional[str] = None):
    paths = section(cfg, "paths")
    csv_path = csv_path or paths.get("records_csv")
    if not csv_path:
        raise ConfigError("Missing config key: paths.records_csv")
    date_format = str(section(cfg, "records").get("date_format", DEFAULT_DATE_FORMAT))

    df = filter_by_date(load_records(str(csv_path)), start_date, end_date, date_format=date_format)
    return to_records(df, date_format=date_format)


def run(
    cfg: dict,
    out_dir: str,
    *,
    start_date: date,
    end_date: date,
    csv_path: Optional[str] = None,
    results_log: Optional[ResultsLog] = None,
    case: Optional[int] = None,
) -> dict:
    """Run one test case (one date range) and write artifacts."""
    os.makedirs(out_dir, exist_ok=True)
    tcfg = TourConfig.from_cfg(cfg)
    out_cfg = section(cfg, "outputs")

    records = select_records(cfg, start_date, end_date, csv_path=csv_path)
    logger.info("Records between %s and %s: %d", start_date, end_date, len(records))
    for r in records:
        logger.debug("%s", r)

    if records and tcfg.start_index >= len(records):
        raise InvalidInputError(f"tour.start_index={tcfg.start_index} but only {len(records)} records in range")

    result = optimize(records, start=tcfg.start_index, max_exact_vertices=tcfg.max_exact_vertices)

    logger.info(
        "Length of approximate cycle: %.6f %s", result.heuristic.cost * tcfg.cost_scale, tcfg.cost_unit
    )
    if result.optimal is not None:
        logger.info(
            "Optimal cycle length: %.6f %s", result.optimal.cost * tcfg.cost_scale, tcfg.cost_unit
        )

    kpis = compute_summary(result, scale=tcfg.cost_scale, unit=tcfg.cost_unit)
    kpis["start_date"] = start_date.isoformat()
    kpis["end_date"] = end_date.isoformat()

    if results_log is not None:
        results_log.write_case(result.heuristic, result.optimal, scale=tcfg.cost_scale, case=case)

    if bool(out_cfg.get("write_kml", True)):
        kml = render_kml(
            records,
            result.heuristic,
            result.optimal,
            name=f"Tour {start_date:%m/%d/%y} - {end_date:%m/%d/%y}",
        )
        save_kml(kml, os.path.join(out_dir, "tour.kml"))

    if bool(out_cfg.get("write_tour_json", True)):
        save_json(
            {
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "n_vertices": len(records),
                "tree_cost": result.tree.total_cost,
                "hamiltonian": {"route": list(result.heuristic.vertices), "cost": result.heuristic.cost},
                "optimal": None
                if result.optimal is None
                else {"route": list(result.optimal.vertices), "cost": result.optimal.cost},
            },
            os.path.join(out_dir, "tour.json"),
        )

    if bool(out_cfg.get("write_metrics", True)):
        pd.DataFrame([kpis]).to_csv(os.path.join(out_dir, "metrics.csv"), index=False, encoding="utf-8-sig")

    return kpis
