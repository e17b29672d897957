"""
Map normalized predictions back to the original scale.

Predictions carry no join key: they are paired with their rows purely by
position, so callers must pass rows and predictions in the same order.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pageview_forecaster.exceptions import MisalignedRowsError
from pageview_forecaster.features import normalizer
from pageview_forecaster.models.forecast import ForecastPoint, NormalizationConstants


def rescale(predictions: list[float], constants: NormalizationConstants) -> list[float]:
    """Apply the inverse normalization elementwise."""
    return [normalizer.invert(p, constants) for p in predictions]


def to_forecast_points(
    dates: list[date],
    predictions: list[float],
    constants: NormalizationConstants,
    actuals: Optional[list[Optional[float]]] = None,
) -> list[ForecastPoint]:
    """Pair predictions positionally with their dates.

    Args:
        dates:       Row dates, in the order the rows were predicted.
        predictions: Normalized predictions, same order.
        constants:   Constants used to normalize the training window.
        actuals:     Optional observed values on the original scale.

    Raises:
        MisalignedRowsError: If the lengths differ.
    """
    if len(predictions) != len(dates):
        raise MisalignedRowsError(len(dates), len(predictions))
    if actuals is not None and len(actuals) != len(dates):
        raise MisalignedRowsError(len(dates), len(actuals))

    originals = rescale(predictions, constants)
    return [
        ForecastPoint(
            obs_date=d,
            normalized_prediction=pred,
            prediction=orig,
            actual=actuals[i] if actuals is not None else None,
        )
        for i, (d, pred, orig) in enumerate(zip(dates, predictions, originals))
    ]
