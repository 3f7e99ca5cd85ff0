"""Configuration utilities.

- Fail fast on missing files / invalid structure.
- Keep config mutation explicit and localized.
"""

from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import yaml


class ConfigError(ValueError):
    """Raised when configuration is missing or invalid."""


def load_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        obj = yaml.safe_load(f)
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ConfigError(f"YAML root must be a mapping (dict). Got: {type(obj).__name__} @ {path}")
    return obj


def save_yaml(obj: Dict[str, Any], path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(obj, f, allow_unicode=True, sort_keys=False)


def save_json(obj: Any, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def now_tag() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = deepcopy(base)

    def rec(a: Dict[str, Any], b: Dict[str, Any]) -> None:
        for k, v in b.items():
            if isinstance(v, dict) and isinstance(a.get(k), dict):
                rec(a[k], v)
            else:
                a[k] = v

    rec(out, override)
    return out


def deep_set(cfg: Dict[str, Any], dotted_path: str, value: Any) -> None:
    keys = dotted_path.split(".")
    cur: Dict[str, Any] = cfg
    for k in keys[:-1]:
        nxt = cur.get(k)
        if nxt is None:
            nxt = {}
            cur[k] = nxt
        if not isinstance(nxt, dict):
            raise ConfigError(
                f"Cannot deep-set '{dotted_path}': '{k}' is not a dict (got {type(nxt).__name__})"
            )
        cur = nxt
    cur[keys[-1]] = value


def section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return `cfg[name]` as a dict; a missing section is an empty dict."""
    sub = cfg.get(name, {})
    if sub is None:
        return {}
    if not isinstance(sub, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping (got {type(sub).__name__})")
    return sub


@dataclass(frozen=True)
class TourConfig:
    start_index: int
    max_exact_vertices: Optional[int]
    cost_scale: float
    cost_unit: str

    @staticmethod
    def from_cfg(cfg: dict) -> "TourConfig":
        tcfg = section(cfg, "tour")

        try:
            start_index = int(tcfg.get("start_index", 0))
            raw_max = tcfg.get("max_exact_vertices", 10)
            max_exact = None if raw_max is None else int(raw_max)
            cost_scale = float(tcfg.get("cost_scale", 1.0))
            cost_unit = str(tcfg.get("cost_unit", "units"))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid tour config: {e}") from e

        if start_index < 0:
            raise ConfigError(f"tour.start_index must be >= 0 (got {start_index})")
        if max_exact is not None and max_exact < 1:
            raise ConfigError(f"tour.max_exact_vertices must be >= 1 or null (got {max_exact})")
        if cost_scale <= 0:
            raise ConfigError(f"tour.cost_scale must be > 0 (got {cost_scale})")

        return TourConfig(
            start_index=start_index,
            max_exact_vertices=max_exact,
            cost_scale=cost_scale,
            cost_unit=cost_unit,
        )


def parse_override(expr: str) -> Tuple[str, Any]:
    """'tour.max_exact_vertices=8' -> ('tour.max_exact_vertices', 8).

    The value is read as a YAML scalar, so "null", "true", "1.5" get their
    natural types.
    """
    if "=" not in expr:
        raise ConfigError(f"Override must look like key.path=value (got {expr!r})")
    path, raw = expr.split("=", 1)
    path = path.strip()
    if not path:
        raise ConfigError(f"Empty key in override {expr!r}")
    try:
        value = yaml.safe_load(raw) if raw.strip() else ""
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid override value in {expr!r}: {e}") from e
    return path, value
