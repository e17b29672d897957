"""
Export helpers for forecast results.

All writers create parent directories and return the written ``Path``.
CSV exports are flat (one row per date) so they load directly into a
spreadsheet or pandas without pre-processing.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pageview_forecaster.models.forecast import ForecastPoint

if TYPE_CHECKING:
    from pageview_forecaster.pipeline.forecast import ForecastResult

FORECAST_FIELDNAMES: list[str] = [
    "date", "kind", "normalized_prediction", "prediction", "actual", "error",
]


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write one CSV line per record under a header row.

    Columns follow ``fieldnames`` when given, else the first record's keys;
    keys outside the columns are dropped.  With neither records nor
    ``fieldnames`` the file is left empty.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    columns = fieldnames or (list(records[0]) if records else [])
    with path.open("w", newline="", encoding="utf-8") as f:
        if columns:
            writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` as indented JSON; dates and paths become strings."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    return path


def forecast_points_to_records(points: list[ForecastPoint], kind: str) -> list[dict]:
    """Flatten forecast points into export rows.

    ``kind`` labels the rows, e.g. ``"eval"`` or ``"forecast"``.  Missing
    actuals and errors are written as empty strings.
    """
    records: list[dict] = []
    for p in points:
        error = p.error
        records.append({
            "date":                  p.obs_date.isoformat(),
            "kind":                  kind,
            "normalized_prediction": round(p.normalized_prediction, 6),
            "prediction":            round(p.prediction, 4),
            "actual":                "" if p.actual is None else p.actual,
            "error":                 "" if error is None else round(error, 4),
        })
    return records


def build_forecast_report(result: "ForecastResult", run_slug: str) -> dict[str, Any]:
    """JSON-ready summary of a forecast run."""
    fs = result.feature_set
    return {
        "run_slug":      run_slug,
        "generated_at":  datetime.now(tz=timezone.utc).isoformat(),
        "cutoff_date":   fs.cutoff_date.isoformat(),
        "normalization": fs.constants.model_dump(mode="json"),
        "rows":          {"train": len(fs.training_rows), "eval": len(fs.evaluation_rows)},
        "metrics":       result.metrics,
        "model":         result.model_summary,
        "forecast": [
            {"date": p.obs_date.isoformat(), "prediction": p.prediction}
            for p in result.forecast
        ],
    }


def write_forecast_exports(
    result: "ForecastResult",
    output_dir: Path,
    run_slug: str,
) -> dict[str, Path]:
    """Write ``forecast_{date}.csv`` and ``forecast_{date}.json``.

    ``{date}`` is the first forecast date.  Returns paths keyed ``csv`` / ``json``.
    """
    stamp = result.next_date.isoformat() if result.next_date else "none"
    records = (
        forecast_points_to_records(result.evaluation, "eval")
        + forecast_points_to_records(result.forecast, "forecast")
    )
    return {
        "csv":  export_to_csv(
            records, output_dir / f"forecast_{stamp}.csv", FORECAST_FIELDNAMES
        ),
        "json": export_to_json(
            build_forecast_report(result, run_slug), output_dir / f"forecast_{stamp}.json"
        ),
    }
