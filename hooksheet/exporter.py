# hooksheet/exporter.py
"""
CSV exporter for the record store.

Output format (strict subset of RFC 4180):
- header: "Timestamp","ID", then the store's column union in sorted order
- every cell double-quoted, embedded quotes doubled
- rows joined with "\n", no trailing newline

Cell rendering:
- None / missing key -> ""
- bool               -> TRUE / FALSE
- int                -> decimal digits
- float              -> positional decimal; integral floats drop ".0"
- str                -> verbatim
"""

import csv
import io
import time
from decimal import Decimal
from typing import Any, List, Optional

from hooksheet.errors import ExportError
from hooksheet.store import RecordStore

LEADING_COLUMNS = ["Timestamp", "ID"]
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def render_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if value.is_integer():
        return str(int(value))
    # repr gives the shortest round-tripping digits; Decimal re-renders them without an exponent
    return format(Decimal(repr(value)), "f")


def render_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return render_number(value)
    return str(value)


def _write_lines(lines: List[List[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(lines)
    text = buf.getvalue()
    # the writer terminates every row; the document itself has no trailing newline
    return text[:-1] if text.endswith("\n") else text


def export_csv(store: RecordStore, newest_first: bool = True) -> str:
    """
    Render the whole store as CSV text.

    Raises ExportError when the store is empty.
    """
    rows, columns = store.snapshot(newest_first=newest_first)
    if not rows:
        raise ExportError("Nothing to export: the store is empty.")

    lines = [LEADING_COLUMNS + columns]
    for row in rows:
        lines.append([row.timestamp, row.id] + [render_cell(row.data.get(c)) for c in columns])
    return _write_lines(lines)


def export_filename(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"webhook_data_export_{now_ms}.csv"
