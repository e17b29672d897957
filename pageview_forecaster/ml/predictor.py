"""
Prediction driver.

``predict_rows()`` is the only place the pipeline calls into a model.  It
checks the one property the pipeline relies on: one prediction per row, in
row order.

Forward forecasting
-------------------
``forecast_ahead()`` predicts the dates after the last observation.  The
first step uses only observed lags.  Each later step appends the previous
prediction to the history, so lags beyond the last observation are model
outputs rather than observations (recursive multi-step forecasting).
Evaluation rows never take this path: their lags are always observed values.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from pageview_forecaster.config import FeatureConfig
from pageview_forecaster.exceptions import MisalignedRowsError
from pageview_forecaster.features.encoder import CategoryVocabulary, encode
from pageview_forecaster.features.lag_builder import build_forecast_row
from pageview_forecaster.ml.base import Predictable
from pageview_forecaster.ml.rescaler import to_forecast_points
from pageview_forecaster.models.forecast import ForecastPoint, NormalizationConstants
from pageview_forecaster.models.series import SeriesPoint

logger = logging.getLogger(__name__)


def predict_rows(model: Predictable, rows: list[dict[str, Any]]) -> list[float]:
    """Predict encoded rows, enforcing positional alignment.

    Raises:
        MisalignedRowsError: If the model returns a different number of
            predictions than rows.
    """
    predictions = list(model.predict(rows))
    if len(predictions) != len(rows):
        raise MisalignedRowsError(len(rows), len(predictions))
    return predictions


def forecast_ahead(
    model: Predictable,
    normalized_history: list[SeriesPoint],
    vocabulary: CategoryVocabulary | None,
    features: FeatureConfig,
    constants: NormalizationConstants,
    horizon_days: int = 1,
) -> list[ForecastPoint]:
    """Forecast the ``horizon_days`` dates following the last history point.

    Args:
        model:              Fitted model.
        normalized_history: Normalized series; at least the last ``p`` dates
                            must be observed.
        vocabulary:         Frozen training vocabulary (None if calendar
                            features are disabled).
        features:           Lag / calendar settings used at training time.
        constants:          Normalization constants for rescaling.
        horizon_days:       Number of consecutive dates to forecast (>= 1).

    Returns:
        One ``ForecastPoint`` per forecast date, ``actual=None``.

    Raises:
        ValueError: If ``horizon_days < 1`` or the history is empty.
        InsufficientHistoryError: The history lacks ``p`` trailing observations.
        UnknownCategoryError: A forecast date has an unseen calendar value.
    """
    if horizon_days < 1:
        raise ValueError(f"horizon_days must be >= 1, got {horizon_days}")
    if not normalized_history:
        raise ValueError("Cannot forecast from an empty history.")

    include_calendar = vocabulary is not None
    history = list(normalized_history)
    points: list[ForecastPoint] = []

    for _ in range(horizon_days):
        target_date = history[-1].obs_date + timedelta(days=1)
        row = build_forecast_row(
            history, target_date, features.lags,
            include_calendar=include_calendar,
            attributes=features.calendar_attributes,
        )
        if vocabulary is not None:
            encoded = encode([row], vocabulary)
        else:
            encoded = [row.as_dict()]
        normalized = predict_rows(model, encoded)
        points.extend(to_forecast_points([target_date], normalized, constants))
        history.append(SeriesPoint(obs_date=target_date, value=normalized[0]))
        logger.debug("Forecast %s: %.4f (normalized)", target_date, normalized[0])

    return points
