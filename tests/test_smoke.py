import logging
import os
import xml.etree.ElementTree as ET
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from geotour.cli import main
from geotour.config import load_yaml, merge_dicts, save_yaml
from geotour.pipeline import optimize, run
from geotour.records import InvalidInputError, Record
from geotour.render import ResultsLog, render_kml


ROOT = Path(__file__).resolve().parents[1]
KML_NS = "{http://earth.google.com/kml/2.2}"


def _cfg(records_csv, tmp_path):
    base = load_yaml(str(ROOT / "configs" / "base.yaml"))
    return merge_dicts(
        base,
        {"paths": {"records_csv": str(records_csv), "run_root": str(tmp_path / "runs")}},
    )


def test_optimize_unit_square(unit_square):
    result = optimize(unit_square)
    assert result.tree.total_cost == pytest.approx(3.0)
    assert result.heuristic.cost <= 8.0
    assert result.optimal.cost == pytest.approx(4.0)
    assert result.optimal.cost <= result.heuristic.cost


def test_optimize_single_record():
    result = optimize([Record(5.0, 5.0)])
    assert result.tree.total_cost == 0.0
    assert result.heuristic.vertices == (0, 0)
    assert result.optimal.vertices == (0, 0)
    assert result.optimal.cost == 0.0


def test_optimize_skips_exact_search_when_too_large(unit_square):
    result = optimize(unit_square, max_exact_vertices=3)
    assert result.optimal is None
    assert result.permutations_evaluated == 0


def test_optimize_rejects_empty_input():
    with pytest.raises(InvalidInputError):
        optimize([])


def test_pipeline_smoke(records_csv, tmp_path):
    cfg = _cfg(records_csv, tmp_path)
    out_dir = tmp_path / "case"

    with ResultsLog.open(str(tmp_path / "results.txt"), header="smoke") as log:
        kpis = run(cfg, str(out_dir), start_date=date(1990, 1, 1), end_date=date(1990, 1, 6), results_log=log)

    assert os.path.exists(out_dir / "tour.kml")
    assert os.path.exists(out_dir / "tour.json")
    assert os.path.exists(out_dir / "metrics.csv")

    assert kpis["n_vertices"] == 7
    assert kpis["permutations_evaluated"] == 720
    assert kpis["optimal_cost"] <= kpis["heuristic_cost"]
    assert 1.0 <= kpis["approx_ratio"] <= 2.0

    m = pd.read_csv(out_dir / "metrics.csv")
    assert m.loc[0, "optimal_cost"] == pytest.approx(kpis["optimal_cost"])
    assert "optimal_miles" in m.columns

    doc = ET.parse(out_dir / "tour.kml").getroot()
    placemarks = doc.findall(f".//{KML_NS}Placemark")
    assert [p.find(f"{KML_NS}name").text for p in placemarks] == ["TSP Path", "Optimal Path"]
    coords = placemarks[1].find(f".//{KML_NS}coordinates").text.split()
    assert len(coords) == 8
    assert coords[0] == coords[-1] == "-79.9296,40.4618"

    text = (tmp_path / "results.txt").read_text(encoding="utf-8")
    assert text.startswith("smoke\n")
    assert "TestCase1" in text
    assert "Hamiltonian Cycle" in text
    assert "Optimum Path" in text


def test_pipeline_empty_range_fails_fast(records_csv, tmp_path):
    cfg = _cfg(records_csv, tmp_path)
    with pytest.raises(InvalidInputError):
        run(cfg, str(tmp_path / "case"), start_date=date(1995, 1, 1), end_date=date(1995, 1, 2))


def test_cli_ranges(records_csv, tmp_path):
    override = tmp_path / "override.yaml"
    save_yaml({"paths": {"records_csv": str(records_csv), "run_root": str(tmp_path / "runs")}}, str(override))

    main(
        [
            "--base", str(ROOT / "configs" / "base.yaml"),
            "--base", str(override),
            "--range", "01/01/90", "01/03/90",
            "--range", "01/04/90", "01/06/90",
            "--range", "02/01/95", "02/02/95",
            "--set", "tour.cost_unit=km",
            "--exp-tag", "smoke",
        ]
    )

    exp_dir = tmp_path / "runs" / "smoke"
    summary = pd.read_csv(exp_dir / "summary.csv")
    assert list(summary["case"]) == [1, 2, 3]
    assert list(summary["n_vertices"].iloc[:2]) == [4, 3]
    assert pd.isna(summary.loc[2, "optimal_cost"])
    assert isinstance(summary.loc[2, "error"], str)
    assert "heuristic_km" in summary.columns

    assert (exp_dir / "case_1" / "tour.kml").exists()
    assert (exp_dir / "config_resolved.yaml").exists()
    results = (exp_dir / "results.txt").read_text(encoding="utf-8")
    assert "TestCase2" in results
    assert "TestCase3" not in results


def test_cli_interactive(records_csv, tmp_path):
    override = tmp_path / "override.yaml"
    save_yaml({"paths": {"records_csv": str(records_csv), "run_root": str(tmp_path / "runs")}}, str(override))

    answers = iter(["01/01/90", "01/02/90", "1", "01/05/90", "01/06/90", "0"])
    main(
        ["--base", str(ROOT / "configs" / "base.yaml"), "--base", str(override), "--exp-tag", "ask"],
        input_fn=lambda prompt: next(answers),
    )

    summary = pd.read_csv(tmp_path / "runs" / "ask" / "summary.csv")
    assert len(summary) == 2


def _override(tmp_path, records_csv, **tour):
    p = tmp_path / "override.yaml"
    cfg = {"paths": {"records_csv": str(records_csv), "run_root": str(tmp_path / "runs")}}
    if tour:
        cfg["tour"] = tour
    save_yaml(cfg, str(p))
    return p


def test_cli_results_log_numbers_cases_by_attempt(records_csv, tmp_path):
    override = _override(tmp_path, records_csv)
    main(
        [
            "--base", str(ROOT / "configs" / "base.yaml"),
            "--base", str(override),
            "--range", "02/01/95", "02/02/95",
            "--range", "01/01/90", "01/03/90",
            "--exp-tag", "numbering",
        ]
    )

    exp_dir = tmp_path / "runs" / "numbering"
    summary = pd.read_csv(exp_dir / "summary.csv")
    assert list(summary["case"]) == [1, 2]

    results = (exp_dir / "results.txt").read_text(encoding="utf-8")
    assert "TestCase2" in results
    assert "TestCase1" not in results


def test_cli_start_index_past_short_range_does_not_abort(records_csv, tmp_path):
    override = _override(tmp_path, records_csv, start_index=3)
    main(
        [
            "--base", str(ROOT / "configs" / "base.yaml"),
            "--base", str(override),
            "--range", "01/01/90", "01/01/90",
            "--range", "01/01/90", "01/06/90",
            "--exp-tag", "short",
        ]
    )

    summary = pd.read_csv(tmp_path / "runs" / "short" / "summary.csv")
    assert list(summary["case"]) == [1, 2]
    assert "start_index" in summary.loc[0, "error"]
    assert summary.loc[1, "n_vertices"] == 7
    assert pd.isna(summary.loc[1, "error"])


def test_run_start_index_past_range_is_input_error(records_csv, tmp_path):
    cfg = merge_dicts(_cfg(records_csv, tmp_path), {"tour": {"start_index": 3}})
    with pytest.raises(InvalidInputError):
        run(cfg, str(tmp_path / "case"), start_date=date(1990, 1, 1), end_date=date(1990, 1, 1))


def test_run_logs_record_lines_only_at_debug(records_csv, tmp_path, caplog):
    cfg = _cfg(records_csv, tmp_path)

    caplog.set_level(logging.INFO, logger="geotour")
    run(cfg, str(tmp_path / "info"), start_date=date(1990, 1, 1), end_date=date(1990, 1, 3))
    messages = [r.getMessage() for r in caplog.records]
    assert any("Records between" in m for m in messages)
    assert not any("5300 BLOCK PENN AV" in m for m in messages)

    caplog.clear()
    caplog.set_level(logging.DEBUG, logger="geotour")
    run(cfg, str(tmp_path / "debug"), start_date=date(1990, 1, 1), end_date=date(1990, 1, 3))
    assert any("5300 BLOCK PENN AV" in r.getMessage() for r in caplog.records)


def test_kml_leaves_out_records_without_lat_lon():
    records = [
        Record(0.0, 0.0, latitude=40.0, longitude=-80.0),
        Record(1.0, 0.0),
        Record(1.0, 1.0, latitude=40.1, longitude=-79.9),
    ]
    result = optimize(records)
    doc = ET.fromstring(render_kml(records, result.heuristic, result.optimal).encode("utf-8"))

    for pm in doc.findall(f".//{KML_NS}Placemark"):
        coords = pm.find(f".//{KML_NS}coordinates").text.split()
        assert len(coords) == 3
        assert "0.0,0.0" not in coords
