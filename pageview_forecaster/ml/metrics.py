"""
Forecast evaluation metrics on the original (pageview) scale.

MAE   — "on average we are off by X views"; equal weight to every error.
RMSE  — squares errors first, so it exposes occasional large misses.
MAPE  — MAE relative to the actual value; comparable across articles.
        Actuals below ``MAPE_EPSILON`` are skipped to avoid division blow-ups.

Pairs where either value is ``None`` are excluded from every metric.
"""

from __future__ import annotations

import math
from typing import Optional

MAPE_EPSILON = 1e-9


def _pairs(
    actuals: list[Optional[float]],
    predictions: list[Optional[float]],
) -> list[tuple[float, float]]:
    if len(actuals) != len(predictions):
        raise ValueError(
            f"actuals ({len(actuals)}) and predictions ({len(predictions)}) differ in length."
        )
    return [
        (a, p) for a, p in zip(actuals, predictions)
        if a is not None and p is not None
    ]


def mae(actuals: list[Optional[float]], predictions: list[Optional[float]]) -> Optional[float]:
    """Mean absolute error, or None if no pair is evaluable."""
    pairs = _pairs(actuals, predictions)
    if not pairs:
        return None
    return sum(abs(a - p) for a, p in pairs) / len(pairs)


def rmse(actuals: list[Optional[float]], predictions: list[Optional[float]]) -> Optional[float]:
    """Root mean squared error, or None if no pair is evaluable."""
    pairs = _pairs(actuals, predictions)
    if not pairs:
        return None
    return math.sqrt(sum((a - p) ** 2 for a, p in pairs) / len(pairs))


def mape(actuals: list[Optional[float]], predictions: list[Optional[float]]) -> Optional[float]:
    """Mean absolute percentage error as a fraction (0.05 = 5%)."""
    pairs = [(a, p) for a, p in _pairs(actuals, predictions) if abs(a) >= MAPE_EPSILON]
    if not pairs:
        return None
    return sum(abs((a - p) / a) for a, p in pairs) / len(pairs)


def evaluate(
    actuals: list[Optional[float]],
    predictions: list[Optional[float]],
) -> dict[str, float]:
    """Return ``mae``, ``rmse``, ``n_eval`` and, when defined, ``mape``.

    Returns an empty dict when nothing is evaluable.
    """
    n = len(_pairs(actuals, predictions))
    if n == 0:
        return {}
    metrics: dict[str, float] = {
        "mae":    mae(actuals, predictions),
        "rmse":   rmse(actuals, predictions),
        "n_eval": float(n),
    }
    pct = mape(actuals, predictions)
    if pct is not None:
        metrics["mape"] = pct
    return metrics
