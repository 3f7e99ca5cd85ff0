"""Point records.

Responsibilities
- Load incident records from a CSV export.
- Filter records to an inclusive date range.
- Turn rows into immutable `Record` values for the optimizer.

Notes
- Only `x` / `y` (already projected, planar) take part in cost computation.
  Everything else is carried through for rendering.
- The CSV's first line is a header; columns are read by position.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Sequence

import pandas as pd


RECORD_COLUMNS = [
    "x",
    "y",
    "time",
    "street",
    "offense",
    "date",
    "tract",
    "latitude",
    "longitude",
]

DEFAULT_DATE_FORMAT = "%m/%d/%y"


class InvalidInputError(ValueError):
    """Raised when the record set cannot be optimized (empty, bad coordinates)."""


@dataclass(frozen=True)
class Record:
    x: float
    y: float
    latitude: float | None = field(default=None, compare=False)
    longitude: float | None = field(default=None, compare=False)
    date: date | None = field(default=None, compare=False)
    time: str = field(default="", compare=False)
    street: str = field(default="", compare=False)
    offense: str = field(default="", compare=False)
    tract: int | None = field(default=None, compare=False)

    def __str__(self) -> str:
        d = self.date.strftime(DEFAULT_DATE_FORMAT) if self.date else ""
        return ", ".join(
            str(v)
            for v in (
                self.x,
                self.y,
                self.time,
                self.street,
                self.offense,
                d,
                "" if self.tract is None else self.tract,
                "" if self.latitude is None else self.latitude,
                "" if self.longitude is None else self.longitude,
            )
        )


def _coord(v, *, name: str, idx: int) -> float:
    if v is None or isinstance(v, bool):
        raise InvalidInputError(f"record {idx}: missing {name} coordinate")
    try:
        f = float(v)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"record {idx}: non-numeric {name} coordinate {v!r}") from e
    if not math.isfinite(f):
        raise InvalidInputError(f"record {idx}: non-finite {name} coordinate {v!r}")
    return f


def validate_records(records: Sequence[Record]) -> None:
    """Check the record set before any algorithmic work.

    Raises:
        InvalidInputError: If there are no records, or a record has a
            missing / non-numeric / non-finite planar coordinate.
    """
    if records is None or len(records) < 1:
        raise InvalidInputError("at least one record is required")
    for i, r in enumerate(records):
        _coord(getattr(r, "x", None), name="x", idx=i)
        _coord(getattr(r, "y", None), name="y", idx=i)


def load_records(csv_path: str) -> pd.DataFrame:
    """Load the raw record table.

    Raises:
        FileNotFoundError: If csv_path does not exist.
        InvalidInputError: If the file does not have the expected columns.

    Returns:
        DataFrame with columns `RECORD_COLUMNS`, dates still as strings.
    """
    if not os.path.exists(csv_path):
        raise FileNotFoundError(f"Record file not found: {csv_path}")

    df = pd.read_csv(csv_path, header=0, dtype=str, skipinitialspace=True)
    if df.shape[1] < len(RECORD_COLUMNS):
        raise InvalidInputError(
            f"{csv_path}: expected {len(RECORD_COLUMNS)} columns "
            f"(X, Y, Time, Street, Offense, Date, Tract, Lat, Long), got {df.shape[1]}"
        )

    df = df.iloc[:, : len(RECORD_COLUMNS)].copy()
    df.columns = RECORD_COLUMNS
    for c in df.columns:
        df[c] = df[c].str.strip()
    return df


def parse_date(s: str, date_format: str = DEFAULT_DATE_FORMAT) -> date:
    try:
        return datetime.strptime(str(s).strip(), date_format).date()
    except ValueError as e:
        raise InvalidInputError(f"Invalid date {s!r} (expected format {date_format})") from e


def filter_by_date(
    df: pd.DataFrame,
    start: date,
    end: date,
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> pd.DataFrame:
    """Keep rows with start <= date <= end, preserving file order."""
    if start > end:
        raise InvalidInputError(f"start date {start} is after end date {end}")
    if df.empty:
        return df.copy()

    dates = pd.to_datetime(df["date"], format=date_format, errors="coerce")
    bad = dates.isna()
    if bad.any():
        first = df.loc[bad, "date"].iloc[0]
        raise InvalidInputError(f"Invalid date {first!r} in record file (expected format {date_format})")

    d = dates.dt.date
    return df[(d >= start) & (d <= end)].reset_index(drop=True)


def _opt_float(v) -> float | None:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _opt_int(v) -> int | None:
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return None


def to_records(df: pd.DataFrame, *, date_format: str = DEFAULT_DATE_FORMAT) -> List[Record]:
    out: List[Record] = []
    for i, r in enumerate(df.itertuples(index=False)):
        raw_date = getattr(r, "date", None)
        out.append(
            Record(
                x=_coord(r.x, name="x", idx=i),
                y=_coord(r.y, name="y", idx=i),
                latitude=_opt_float(getattr(r, "latitude", None)),
                longitude=_opt_float(getattr(r, "longitude", None)),
                date=parse_date(raw_date, date_format) if isinstance(raw_date, str) and raw_date else None,
                time=str(getattr(r, "time", "") or ""),
                street=str(getattr(r, "street", "") or ""),
                offense=str(getattr(r, "offense", "") or ""),
                tract=_opt_int(getattr(r, "tract", None)),
            )
        )
    return out
