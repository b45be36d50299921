"""CSV serialization of vial records.

Schema (one row per record): value,x,y,rect,row,col

- `value` is quoted when it contains a comma
- `rect` is always quoted: "(x, y, w, h)" with integer components
"""

import csv
import io
import logging
import re
from pathlib import Path
from typing import List, Sequence, Union

from ..contracts import Rect, VialRecord

logger = logging.getLogger(__name__)

CSV_HEADER = ["value", "x", "y", "rect", "row", "col"]

_RECT_RE = re.compile(r"^\(\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*\)$")


def format_rect(rect: Rect) -> str:
    x, y, w, h = rect.as_int_tuple()
    return f"({x}, {y}, {w}, {h})"


def parse_rect(text: str) -> Rect:
    """Parse "(x, y, w, h)"; malformed input gives a zero rect."""
    m = _RECT_RE.match(text.strip())
    if not m:
        return Rect.zero()
    return Rect(*(float(g) for g in m.groups()))


def export_csv(records: Sequence[VialRecord]) -> str:
    """
    Serialize records to CSV text with a header row.

    Args:
        records: Records in output order

    Returns:
        CSV text, newline-separated, no trailing newline
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for rec in records:
        writer.writerow([
            rec.value,
            repr(float(rec.center_x)),
            repr(float(rec.center_y)),
            format_rect(rec.bounding_rect),
            rec.row,
            rec.col,
        ])
    return buf.getvalue().rstrip("\n")


def export_csv_file(records: Sequence[VialRecord], path: Union[str, Path]) -> Path:
    """Write records as CSV (UTF-8) and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(export_csv(records))
        f.write("\n")
    logger.debug("Wrote %d record(s) to %s", len(records), path)
    return path


def parse_csv(text: str) -> List[VialRecord]:
    """
    Parse CSV produced by export_csv back into records.

    The header row is skipped. Rows with fewer than six fields or
    non-numeric coordinates/indices are ignored.
    """
    records = []
    rows = csv.reader(io.StringIO(text))
    for i, fields in enumerate(rows):
        if i == 0 or not fields:
            continue
        if len(fields) < len(CSV_HEADER):
            logger.debug("Skipping short CSV row %d: %r", i, fields)
            continue
        try:
            center_x = float(fields[1])
            center_y = float(fields[2])
            row = int(fields[4])
            col = int(fields[5])
        except ValueError:
            logger.debug("Skipping malformed CSV row %d: %r", i, fields)
            continue
        records.append(VialRecord(
            value=fields[0],
            row=row,
            col=col,
            center_x=center_x,
            center_y=center_y,
            bounding_rect=parse_rect(fields[3]),
        ))
    return records
