"""
CSV loader for a daily pageview series.

Format — comma delimited with a header row.  Two columns are read (names are
configurable via ``[data]`` in the config):

  date   → YYYY-MM-DD, strictly ascending, no duplicates
  views  → numeric value; an empty cell means "no observation" (None)

Other columns are ignored.

Calendar gaps (missing dates) are allowed but logged: rows whose lag window
crosses a gap are dropped later by the feature builder rather than padded.
"""

from __future__ import annotations

import csv
import logging
import math
from datetime import date
from pathlib import Path
from typing import Optional

from pageview_forecaster.models.series import SeriesPoint
from pageview_forecaster.utils.time_utils import find_gaps

logger = logging.getLogger(__name__)


def parse_series_csv(
    path: Path,
    date_column: str = "date",
    value_column: str = "views",
) -> list[SeriesPoint]:
    """Parse a CSV file into an ascending list of :class:`SeriesPoint`.

    All rows are validated before anything is returned.  If **any** row
    fails, a single :class:`ValueError` lists the first 10 failures.

    Args:
        path:         Path to the CSV file (must exist).
        date_column:  Header of the date column.
        value_column: Header of the value column.

    Returns:
        Series points sorted ascending by date.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If columns are missing, a row fails to parse, or dates
            are duplicated or out of order.
    """
    if not path.exists():
        raise FileNotFoundError(f"Series CSV file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")

        actual_cols = set(reader.fieldnames)
        missing = {date_column, value_column} - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )

        rows = list(reader)

    if not rows:
        raise ValueError(f"Series CSV has a header but no rows: {path}")

    points: list[SeriesPoint] = []
    errors: list[tuple[int, str]] = []

    for i, row in enumerate(rows):
        line_no = i + 2  # 1-based, skip header row
        try:
            point = SeriesPoint(
                obs_date=_parse_date(row.get(date_column, "")),
                value=_parse_value(row.get(value_column, "")),
            )
        except ValueError as exc:
            errors.append((line_no, str(exc)))
            continue
        if points and point.obs_date <= points[-1].obs_date:
            kind = "Duplicate" if point.obs_date == points[-1].obs_date else "Out-of-order"
            errors.append((line_no, f"{kind} date {point.obs_date.isoformat()}."))
            continue
        points.append(point)

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:max_shown])
        suffix = f"\n  … and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(
            f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}"
        )

    gaps = find_gaps([p.obs_date for p in points])
    if gaps:
        logger.warning(
            "Series %s has %d missing calendar date(s), first %s",
            path.name, len(gaps), gaps[0].isoformat(),
        )

    n_null = sum(1 for p in points if p.value is None)
    logger.info(
        "Parsed %d points from %s (%s .. %s, %d null)",
        len(points), path.name,
        points[0].obs_date.isoformat(), points[-1].obs_date.isoformat(), n_null,
    )
    return points


# ── Private helpers ────────────────────────────────────────────────────────────

def _parse_date(raw: str) -> date:
    v = raw.strip()
    if not v:
        raise ValueError("Date field is empty.")
    try:
        return date.fromisoformat(v)
    except ValueError:
        raise ValueError(f"Invalid date '{v}'. Expected YYYY-MM-DD format.")


def _parse_value(raw: str) -> Optional[float]:
    v = raw.strip()
    if not v:
        return None
    try:
        value = float(v)
    except ValueError:
        raise ValueError(f"Invalid value '{v}'. Expected a number or an empty cell.")
    if not math.isfinite(value):
        raise ValueError(f"Value must be finite, got '{v}'.")
    return value
