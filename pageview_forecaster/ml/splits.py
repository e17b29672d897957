"""
Date-threshold train / evaluation split.

``training = {r : r.obs_date < cutoff}``, ``evaluation = {r : r.obs_date >= cutoff}``.

Never random: every training row precedes every evaluation row.  Input
order is preserved in both halves; predictions are matched back to rows by
position.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, TypeVar

T = TypeVar("T")


def _row_date(row: Any) -> date:
    if isinstance(row, dict):
        return row["obs_date"]
    return row.obs_date


def split_by_date(rows: list[T], cutoff_date: date) -> tuple[list[T], list[T]]:
    """Partition rows by ``obs_date`` around ``cutoff_date``.

    Works on ``FeatureRow`` objects and encoded row dicts alike.

    Returns:
        ``(training_rows, evaluation_rows)``; disjoint, and together exactly
        the input rows.
    """
    training: list[T] = []
    evaluation: list[T] = []
    for row in rows:
        (training if _row_date(row) < cutoff_date else evaluation).append(row)
    return training, evaluation


def default_cutoff(last_date: date, eval_days: int) -> date:
    """Cutoff that leaves the last ``eval_days`` dates for evaluation.

    Raises:
        ValueError: If ``eval_days < 1``.
    """
    if eval_days < 1:
        raise ValueError(f"eval_days must be >= 1, got {eval_days}")
    return last_date - timedelta(days=eval_days - 1)
