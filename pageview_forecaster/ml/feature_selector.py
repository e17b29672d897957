"""
Model input columns and matrix construction.

Model inputs are exactly ``lag_1 .. lag_p`` followed by the vocabulary's
indicator columns, in vocabulary order.  ``obs_date`` and ``y`` are never
inputs.  The same column list is used for training, evaluation and forecast
rows, so indicator positions cannot drift between them.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from pageview_forecaster.features.encoder import CategoryVocabulary
from pageview_forecaster.features.lag_builder import lag_column

TARGET_COL = "y"
EXCLUDED_COLS: frozenset[str] = frozenset({"obs_date", TARGET_COL})


def feature_columns(p: int, vocabulary: Optional[CategoryVocabulary] = None) -> list[str]:
    """Return the ordered model input columns."""
    cols = [lag_column(k) for k in range(1, p + 1)]
    if vocabulary is not None:
        cols.extend(vocabulary.columns())
    return cols


def to_float(v: Any) -> float:
    """Convert a value to float, returning NaN for None or non-numeric values."""
    if v is None:
        return float("nan")
    try:
        return float(v)
    except (TypeError, ValueError):
        return float("nan")


def build_feature_matrix(rows: list[dict[str, Any]], feature_cols: list[str]) -> np.ndarray:
    """Build an ``(n_rows, n_cols)`` float64 matrix from encoded row dicts.

    Raises:
        ValueError: If ``feature_cols`` names an excluded column, or a row is
            missing one of the columns.
    """
    leaked = EXCLUDED_COLS.intersection(feature_cols)
    if leaked:
        raise ValueError(f"Columns {sorted(leaked)} must never be model inputs.")
    if not rows:
        return np.empty((0, len(feature_cols)), dtype=np.float64)

    for row in rows:
        missing = [c for c in feature_cols if c not in row]
        if missing:
            raise ValueError(
                f"Row {row.get('obs_date')} is missing feature column(s) {missing[:5]}."
            )
    return np.array(
        [[to_float(row[c]) for c in feature_cols] for row in rows],
        dtype=np.float64,
    )


def build_target_vector(rows: list[dict[str, Any]], target_col: str = TARGET_COL) -> np.ndarray:
    """Build a float64 target vector; null targets become NaN."""
    return np.array([to_float(row.get(target_col)) for row in rows], dtype=np.float64)
