"""
CSV bar feed.

Expected header (case-insensitive): timestamp, open, high, low, close.
``datetime``/``date``/``time`` are accepted for the timestamp column and
extra columns such as volume are ignored. Rows must be in time order.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from intraday_direction.models import Bar, BarValidationError, validate_bar

log = logging.getLogger(__name__)

_TIMESTAMP_COLUMNS = ("timestamp", "datetime", "date", "time")
_TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y/%m/%d %H:%M:%S", "%Y/%m/%d %H:%M", "%m/%d/%Y %H:%M")


def parse_timestamp(value: str) -> datetime:
    value = value.strip()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise BarValidationError(f"Could not parse timestamp: {value!r}")


def _resolve_columns(fieldnames: Optional[List[str]]) -> Dict[str, str]:
    if not fieldnames:
        raise BarValidationError("CSV file has no header row")
    lookup = {name.strip().lower(): name for name in fieldnames}
    columns: Dict[str, str] = {}
    for candidate in _TIMESTAMP_COLUMNS:
        if candidate in lookup:
            columns["timestamp"] = lookup[candidate]
            break
    else:
        raise BarValidationError(f"CSV header needs a timestamp column, got {fieldnames}")
    for name in ("open", "high", "low", "close"):
        if name not in lookup:
            raise BarValidationError(f"CSV header is missing column {name!r}")
        columns[name] = lookup[name]
    return columns


def _parse_price(row: Dict[str, str], column: str, line: int) -> float:
    raw = (row.get(column) or "").strip()
    try:
        return float(raw)
    except ValueError as exc:
        raise BarValidationError(f"line {line}: invalid {column} value {raw!r}") from exc


def iter_csv_bars(path: str | Path) -> Iterator[Bar]:
    """Yield validated bars from ``path``; fails fast on the first bad row."""
    path = Path(path)
    previous: Optional[datetime] = None
    with path.open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        columns = _resolve_columns(reader.fieldnames)
        for line, row in enumerate(reader, start=2):
            bar = Bar(
                timestamp=parse_timestamp(row.get(columns["timestamp"]) or ""),
                open=_parse_price(row, columns["open"], line),
                high=_parse_price(row, columns["high"], line),
                low=_parse_price(row, columns["low"], line),
                close=_parse_price(row, columns["close"], line),
            )
            try:
                validate_bar(bar, previous)
            except BarValidationError as exc:
                raise BarValidationError(f"{path.name} line {line}: {exc}") from exc
            previous = bar.timestamp
            yield bar


def load_csv_bars(path: str | Path) -> List[Bar]:
    bars = list(iter_csv_bars(path))
    log.info("Loaded %d bars from %s", len(bars), path)
    return bars
