"""
Feature table assembly: normalized, lagged, encoded rows + Parquet + manifest.

Purpose
-------
``build_feature_set()`` runs every feature module in order and returns an
in-memory ``FeatureSet``.  ``FeatureBuildStage`` writes it to disk; the
forecast pipeline consumes it directly.

Assembly (step-by-step)
-----------------------
1.  Resolve the cutoff: ``split.cutoff_date`` or the last ``eval_days`` dates.
2.  ``normalizer.fit()`` on observations strictly before the cutoff.
3.  ``normalizer.apply()`` to the whole series.
4.  ``lag_builder.transform()`` → ``FeatureRow`` list (incomplete history dropped).
5.  ``splits.split_by_date()`` → training / evaluation rows.
6.  ``encoder.fit_vocabulary()`` on training rows only, then ``encode()``
    both halves with that frozen vocabulary.

Output files
------------
    {output_dir}/features/features_{start}_{end}.parquet
    {output_dir}/features/manifest_{start}_{end}.json

The Parquet holds training and evaluation rows with a ``split`` column.
The manifest records constants, vocabulary and feature columns — everything
needed to rebuild forecast-time inputs the same way.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from pageview_forecaster.config import AppConfig
from pageview_forecaster.features import normalizer
from pageview_forecaster.features.encoder import (
    CategoryVocabulary,
    check_vocabulary_coverage,
    encode,
    fit_vocabulary,
)
from pageview_forecaster.features.lag_builder import transform
from pageview_forecaster.ml.feature_selector import TARGET_COL, feature_columns
from pageview_forecaster.ml.splits import default_cutoff, split_by_date
from pageview_forecaster.models.forecast import NormalizationConstants
from pageview_forecaster.models.series import SeriesPoint

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureSet:
    """Everything the model stage needs, built from one series.

    Attributes:
        cutoff_date:        First evaluation date.
        constants:          Normalization constants fitted before the cutoff.
        vocabulary:         Frozen calendar vocabulary, or None if disabled.
        feature_cols:       Ordered model input columns.
        normalized_series:  Whole series on the normalized scale.
        training_rows:      Encoded rows dated before the cutoff.
        evaluation_rows:    Encoded rows dated on or after the cutoff.
    """

    cutoff_date: date
    constants: NormalizationConstants
    vocabulary: Optional[CategoryVocabulary]
    feature_cols: list[str]
    normalized_series: list[SeriesPoint]
    training_rows: list[dict[str, Any]]
    evaluation_rows: list[dict[str, Any]]

    @property
    def n_rows(self) -> int:
        return len(self.training_rows) + len(self.evaluation_rows)


def resolve_cutoff(series: list[SeriesPoint], config: AppConfig) -> date:
    """Configured cutoff, or one leaving the last ``eval_days`` for evaluation."""
    if config.split.cutoff_date is not None:
        return config.split.cutoff_date
    return default_cutoff(series[-1].obs_date, config.split.eval_days)


def build_feature_set(
    series: list[SeriesPoint],
    config: AppConfig,
    cutoff_date: Optional[date] = None,
) -> FeatureSet:
    """Normalize, lag, split and encode ``series``.

    Args:
        series:      Ascending daily series on the original scale.
        config:      Application config (features + split sections).
        cutoff_date: Overrides ``resolve_cutoff()`` when given.

    Raises:
        ValueError: If ``series`` is empty.
        DegenerateInputError: Constant or too-short training window.
        UnknownCategoryError: An evaluation row has a calendar value the
            training rows never had.
    """
    if not series:
        raise ValueError("Cannot build features from an empty series.")

    cutoff = cutoff_date or resolve_cutoff(series, config)
    features = config.features

    constants = normalizer.fit(series, cutoff)
    normalized = normalizer.apply(series, constants)
    rows = transform(
        normalized, features.lags,
        include_calendar=features.include_calendar,
        attributes=features.calendar_attributes,
    )
    train_rows, eval_rows = split_by_date(rows, cutoff)
    log.info(
        "Feature rows: %d total, %d training, %d evaluation (cutoff=%s, dropped=%d)",
        len(rows), len(train_rows), len(eval_rows), cutoff, len(series) - len(rows),
    )

    vocabulary: Optional[CategoryVocabulary] = None
    if features.include_calendar and features.calendar_attributes and train_rows:
        check_vocabulary_coverage(train_rows)
        vocabulary = fit_vocabulary(train_rows, features.calendar_attributes)
        encoded_train = encode(train_rows, vocabulary)
        encoded_eval = encode(eval_rows, vocabulary)
    else:
        encoded_train = [r.as_dict() for r in train_rows]
        encoded_eval = [r.as_dict() for r in eval_rows]

    return FeatureSet(
        cutoff_date=cutoff,
        constants=constants,
        vocabulary=vocabulary,
        feature_cols=feature_columns(features.lags, vocabulary),
        normalized_series=normalized,
        training_rows=encoded_train,
        evaluation_rows=encoded_eval,
    )


# ── Parquet assembly ───────────────────────────────────────────────────────────

def build_parquet_schema(feature_cols: list[str]) -> pa.Schema:
    """Schema: obs_date, split, y, lags as float64, indicators as int8."""
    fields = [
        pa.field("obs_date", pa.date32(), nullable=False),
        pa.field("split", pa.string(), nullable=False),
        pa.field(TARGET_COL, pa.float64(), nullable=True),
    ]
    for col in feature_cols:
        pa_type = pa.float64() if col.startswith("lag_") else pa.int8()
        fields.append(pa.field(col, pa_type, nullable=False))
    return pa.schema(fields)


def rows_to_parquet_table(feature_set: FeatureSet) -> pa.Table:
    """Convert the training + evaluation rows to a PyArrow table."""
    tagged = (
        [dict(r, split="train") for r in feature_set.training_rows]
        + [dict(r, split="eval") for r in feature_set.evaluation_rows]
    )
    schema = build_parquet_schema(feature_set.feature_cols)
    arrays = [pa.array([r[f.name] for r in tagged], type=f.type) for f in schema]
    return pa.Table.from_arrays(arrays, schema=schema)


def write_feature_parquet(feature_set: FeatureSet, path: Path) -> int:
    """Write the feature table; returns the number of rows written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    table = rows_to_parquet_table(feature_set)
    pq.write_table(table, str(path), compression="snappy")
    log.info("Feature Parquet written: %s (%d rows)", path.name, table.num_rows)
    return table.num_rows


def make_output_paths(output_dir: str, start_date: date, end_date: date) -> dict[str, Path]:
    """Deterministic output paths; keys ``features`` and ``manifest``."""
    base = Path(output_dir) / "features"
    return {
        "features": base / f"features_{start_date}_{end_date}.parquet",
        "manifest": base / f"manifest_{start_date}_{end_date}.json",
    }


def _hash_file(path: Path) -> str:
    """Return the SHA-256 hex digest of a file's contents."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


# ── Manifest ───────────────────────────────────────────────────────────────────

def build_manifest(
    feature_set: FeatureSet,
    series: list[SeriesPoint],
    features_path: Path,
    run_slug: str,
    config: AppConfig,
) -> dict[str, Any]:
    """Build the manifest dict describing one feature build."""
    vocabulary = (
        {name: list(values) for name, values in feature_set.vocabulary.attributes.items()}
        if feature_set.vocabulary is not None else None
    )
    return {
        "schema_version": "1.0",
        "built_at":    datetime.now(tz=timezone.utc).isoformat(),
        "run_slug":    run_slug,
        "series_file": config.data.series_file,
        "date_range": {
            "start": series[0].obs_date.isoformat(),
            "end":   series[-1].obs_date.isoformat(),
        },
        "cutoff_date": feature_set.cutoff_date.isoformat(),
        "files": {
            "features": {
                "path":        str(features_path),
                "sha256":      _hash_file(features_path) if features_path.exists() else None,
                "rows":        feature_set.n_rows,
                "compression": "snappy",
            },
        },
        "rows": {
            "train": len(feature_set.training_rows),
            "eval":  len(feature_set.evaluation_rows),
        },
        "normalization":   feature_set.constants.model_dump(mode="json"),
        "vocabulary":      vocabulary,
        "feature_columns": feature_set.feature_cols,
        "config_snapshot": {
            "features": config.features.model_dump(),
            "split":    config.split.model_dump(mode="json"),
        },
    }


def write_manifest(manifest: dict[str, Any], path: Path) -> None:
    """Write the manifest dict as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, default=str)
    log.info("Manifest written: %s", path.name)
