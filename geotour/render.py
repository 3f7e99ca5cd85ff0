"""Output rendering.

- `render_kml`: a small KML 2.2 document with the heuristic tour and the
  optimal tour as two styled line strings (open it in Google Earth).
- `ResultsLog`: plain-text results sink, one block per test case.

Both only translate vertex indices back into records; no optimization here.
"""

from __future__ import annotations

import os
from typing import IO, List, Optional, Sequence
from xml.sax.saxutils import escape

from .records import Record
from .routing.tour import Cycle


def _kml_coords(records: Sequence[Record], cycle: Cycle) -> str:
    lines: List[str] = []
    for v in cycle.vertices:
        r = records[int(v)]
        # records without geographic coordinates are left out of the drawing
        if r.longitude is None or r.latitude is None:
            continue
        lines.append(f"{float(r.longitude)},{float(r.latitude)}")
    return "\n".join(lines)


def _placemark(name: str, style_id: str, coords: str) -> str:
    return f"""    <Placemark>
      <name>{escape(name)}</name>
      <description>{escape(name)}</description>
      <styleUrl>#{style_id}</styleUrl>
      <LineString>
        <tessellate>1</tessellate>
        <coordinates>
{coords}
        </coordinates>
      </LineString>
    </Placemark>"""


def render_kml(
    records: Sequence[Record],
    heuristic: Cycle,
    optimal: Optional[Cycle],
    *,
    name: str = "TSP Tour",
    description: str = "Approximate and optimal tours",
) -> str:
    placemarks = [_placemark("TSP Path", "tspPath", _kml_coords(records, heuristic))]
    if optimal is not None:
        placemarks.append(_placemark("Optimal Path", "optimalPath", _kml_coords(records, optimal)))
    body = "\n".join(placemarks)

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://earth.google.com/kml/2.2">
  <Document>
    <name>{escape(name)}</name>
    <description>{escape(description)}</description>
    <Style id="tspPath">
      <LineStyle>
        <color>73FF0000</color>
        <width>5</width>
      </LineStyle>
    </Style>
    <Style id="optimalPath">
      <LineStyle>
        <color>507800F0</color>
        <width>5</width>
      </LineStyle>
    </Style>
{body}
  </Document>
</kml>
"""


def save_kml(kml: str, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(kml)


class ResultsLog:
    """Text sink for per-case results.

    Usage:
        with ResultsLog.open("runs/x/results.txt", header="run 1") as log:
            log.write_case(heuristic, optimal, scale=0.00018939)
    """

    def __init__(self, stream: IO[str]):
        self._stream = stream
        self._cases = 0

    @classmethod
    def open(cls, path: str, *, header: Optional[str] = None) -> "ResultsLog":
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        log = cls(open(path, "w", encoding="utf-8"))
        if header:
            log._stream.write(f"{header}\n")
            log._stream.flush()
        return log

    @property
    def cases_written(self) -> int:
        return self._cases

    def write_case(
        self,
        heuristic: Cycle,
        optimal: Optional[Cycle],
        *,
        scale: float = 1.0,
        case: Optional[int] = None,
    ) -> None:
        """Append one case block; `case` defaults to the number of blocks written so far + 1."""
        self._cases += 1
        s = self._stream
        s.write(f"\nTestCase{self._cases if case is None else case}\n")
        s.write("\nHamiltonian Cycle\n")
        s.write(f"{heuristic}\n")
        s.write("Length\n")
        s.write(f"{heuristic.cost * scale}\n")
        s.write("\nOptimum Path\n")
        if optimal is None:
            s.write("skipped\n")
        else:
            s.write(f"{optimal}\n")
            s.write("Length\n")
            s.write(f"{optimal.cost * scale}\n")
        s.flush()

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> "ResultsLog":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
