from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

import pandas as pd

from .config import ConfigError, deep_set, load_yaml, merge_dicts, now_tag, parse_override, save_yaml, section
from .logging_utils import setup_logger
from .pipeline import run as run_pipeline
from .records import DEFAULT_DATE_FORMAT, InvalidInputError, parse_date
from .render import ResultsLog


SUMMARY_KEY_COLS = [
    "case",
    "start_date",
    "end_date",
    "n_vertices",
    "tree_cost",
    "heuristic_cost",
    "optimal_cost",
    "approx_ratio",
    "permutations_evaluated",
    "runtime_total_sec",
]


def _prompt_ranges(input_fn: Callable[[str], str]) -> Iterator[Tuple[str, str]]:
    while True:
        start = input_fn("Enter start date\n").strip()
        end = input_fn("Enter end date\n").strip()
        yield start, end
        ans = input_fn("Enter 1 to continue, 0 to exit\n").strip()
        if ans != "1":
            return


def main(argv: List[str] | None = None, *, input_fn: Optional[Callable[[str], str]] = None) -> None:
    p = argparse.ArgumentParser(prog="geotour-run", description="Approximate and exact tours over dated point records")
    p.add_argument("--base", action="append", default=None, help="YAML config (repeatable, later wins)")
    p.add_argument("--csv", default=None, help="override paths.records_csv")
    p.add_argument(
        "--range",
        dest="ranges",
        nargs=2,
        action="append",
        metavar=("START", "END"),
        default=None,
        help="inclusive date range, one test case per flag (e.g. 01/01/90 01/05/90)",
    )
    p.add_argument("--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
                   help="dotted config override, e.g. tour.max_exact_vertices=8")
    p.add_argument("--exp-tag", default=None)
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    cfg: dict = {}
    for b in args.base or ["configs/base.yaml"]:
        cfg = merge_dicts(cfg, load_yaml(b))
    for expr in args.overrides:
        deep_set(cfg, *parse_override(expr))

    run_root = section(cfg, "paths").get("run_root", "runs")
    exp_tag = args.exp_tag or f"tour_{now_tag()}"
    exp_dir = os.path.join(run_root, exp_tag)
    os.makedirs(exp_dir, exist_ok=True)
    save_yaml(cfg, os.path.join(exp_dir, "config_resolved.yaml"))

    logger = setup_logger(
        "geotour",
        Path(exp_dir) / "run.log",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    date_format = str(section(cfg, "records").get("date_format", DEFAULT_DATE_FORMAT))
    write_results = bool(section(cfg, "outputs").get("write_results_log", True))
    results_log = ResultsLog.open(os.path.join(exp_dir, "results.txt"), header=exp_tag) if write_results else None

    if args.ranges:
        ranges = iter([tuple(r) for r in args.ranges])
    else:
        ranges = _prompt_ranges(input_fn or input)

    rows = []
    try:
        for k, (start_s, end_s) in enumerate(ranges, start=1):
            try:
                start_date = parse_date(start_s, date_format)
                end_date = parse_date(end_s, date_format)
                kpis = run_pipeline(
                    cfg,
                    os.path.join(exp_dir, f"case_{k}"),
                    start_date=start_date,
                    end_date=end_date,
                    csv_path=args.csv,
                    results_log=results_log,
                    case=k,
                )
            except (InvalidInputError, ConfigError) as e:
                logger.error("case %d (%s - %s) failed: %s", k, start_s, end_s, e)
                rows.append({"case": k, "start_date": start_s, "end_date": end_s, "error": str(e)})
                continue
            kpis["case"] = k
            rows.append(kpis)
    finally:
        if results_log is not None:
            results_log.close()

    summary = pd.DataFrame(rows)
    for c in SUMMARY_KEY_COLS:
        if c not in summary.columns:
            summary[c] = None
    summary = summary[SUMMARY_KEY_COLS + [c for c in summary.columns if c not in SUMMARY_KEY_COLS]]

    summary.to_csv(os.path.join(exp_dir, "summary.csv"), index=False, encoding="utf-8-sig")
    print(f"[DONE] {os.path.join(exp_dir, 'summary.csv')} written ({len(rows)} case(s))")


if __name__ == "__main__":
    main()
