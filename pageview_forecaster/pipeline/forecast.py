"""
Forecast stage: train the network, evaluate it, and forecast forward.

Flow
----
1.  ``build_feature_set()`` — normalize on the training window, build lag and
    calendar rows, split at the cutoff, encode with the frozen vocabulary.
2.  ``train_model()`` on the training rows (or fit a caller-supplied model).
3.  ``predict_rows()`` on the evaluation rows; lags there are observed values.
4.  Rescale and pair predictions with their dates and actuals; compute MAE,
    RMSE and MAPE on the original scale.
5.  ``forecast_ahead()`` for the ``horizon_days`` dates after the last
    observation.

Row order is preserved end to end: predictions are matched back to dates by
position only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

from pageview_forecaster.config import AppConfig
from pageview_forecaster.features.dataset_builder import FeatureSet, build_feature_set
from pageview_forecaster.ingestion.series_csv import parse_series_csv
from pageview_forecaster.ml.metrics import evaluate
from pageview_forecaster.ml.predictor import forecast_ahead, predict_rows
from pageview_forecaster.ml.rescaler import to_forecast_points
from pageview_forecaster.ml.trainer import train_model
from pageview_forecaster.models.forecast import ForecastPoint
from pageview_forecaster.models.meta import RunMetadata
from pageview_forecaster.models.series import SeriesPoint, value_lookup
from pageview_forecaster.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


@dataclass
class ForecastResult:
    """Outcome of one forecast run.

    Attributes:
        feature_set: Constants, vocabulary and encoded rows used.
        evaluation:  One point per evaluation row, with actuals.
        metrics:     Original-scale metrics over evaluation points.
        forecast:    Forward forecast points (``actual`` is None).
        model_summary: ``describe()`` output of the fitted model, if available.
    """

    feature_set: FeatureSet
    evaluation: list[ForecastPoint]
    metrics: dict[str, float]
    forecast: list[ForecastPoint]
    model_summary: dict[str, Any] = field(default_factory=dict)

    @property
    def next_value(self) -> Optional[float]:
        """Original-scale forecast for the first unobserved date."""
        return self.forecast[0].prediction if self.forecast else None

    @property
    def next_date(self) -> Optional[date]:
        return self.forecast[0].obs_date if self.forecast else None


def run_forecast_pipeline(
    series: list[SeriesPoint],
    config: AppConfig,
    model: Any = None,
    cutoff_date: Optional[date] = None,
) -> ForecastResult:
    """Run the full train / evaluate / forecast flow on an in-memory series.

    Args:
        series:      Ascending daily series on the original scale.
        config:      Application config.
        model:       Optional unfitted model satisfying ``Trainable`` and
                     ``Predictable``; defaults to an ``MLPForecaster`` built
                     from ``config.model``.
        cutoff_date: Overrides the configured train / evaluation cutoff.

    Returns:
        ``ForecastResult``.
    """
    feature_set = build_feature_set(series, config, cutoff_date=cutoff_date)

    if model is None:
        model = train_model(
            feature_set.training_rows, feature_set.feature_cols, config.model
        )
    else:
        model.fit(feature_set.training_rows, feature_set.feature_cols)

    eval_rows = feature_set.evaluation_rows
    normalized_preds = predict_rows(model, eval_rows)
    originals = value_lookup(series)
    dates = [r["obs_date"] for r in eval_rows]
    actuals = [originals.get(d) for d in dates]
    evaluation = to_forecast_points(
        dates, normalized_preds, feature_set.constants, actuals=actuals
    )
    metrics = evaluate(actuals, [p.prediction for p in evaluation])
    if metrics:
        logger.info(
            "Evaluation over %d row(s): MAE=%.2f RMSE=%.2f",
            int(metrics["n_eval"]), metrics["mae"], metrics["rmse"],
        )
    else:
        logger.warning("No evaluation rows with observed actuals after %s", feature_set.cutoff_date)

    forecast = forecast_ahead(
        model,
        feature_set.normalized_series,
        feature_set.vocabulary,
        config.features,
        feature_set.constants,
        horizon_days=config.forecast.horizon_days,
    )
    logger.info(
        "Forecast for %s: %.2f", forecast[0].obs_date, forecast[0].prediction
    )

    describe = getattr(model, "describe", None)
    return ForecastResult(
        feature_set=feature_set,
        evaluation=evaluation,
        metrics=metrics,
        forecast=forecast,
        model_summary=describe() if callable(describe) else {},
    )


class ForecastStage(PipelineStage):
    """Loads the configured series and runs ``run_forecast_pipeline()``.

    After ``run()``, ``result`` holds the ``ForecastResult``.
    """

    stage_name = "forecast"

    def _execute(self, run: RunMetadata, **kwargs) -> int:
        data = self.config.data
        series = kwargs.get("series")
        if series is None:
            series = parse_series_csv(
                Path(data.series_file),
                date_column=data.date_column,
                value_column=data.value_column,
            )
        self.result = run_forecast_pipeline(
            series, self.config, model=kwargs.get("model")
        )
        return self.result.feature_set.n_rows
