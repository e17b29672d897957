"""
Shared pytest fixtures for the pageview forecaster test suite.

Provides:
  - ``make_series``: factory building a gap-free daily series from values.
  - ``linear_series``: the 30-day ``v_d = 100 + d`` series.
  - ``seasonal_series``: 400 days with a weekly cycle and a slow trend,
    long enough to cover every calendar value in its training window.
  - ``fast_config``: ``AppConfig`` with a small, quick network and no log file.
  - Stub models implementing the Trainable / Predictable protocols.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Callable, Optional

import pytest

from pageview_forecaster.config import (
    AppConfig,
    FeatureConfig,
    ForecastConfig,
    LoggingConfig,
    ModelConfig,
    SplitConfig,
)
from pageview_forecaster.models.series import SeriesPoint

SERIES_START = date(2024, 1, 1)


def build_series(
    values: list[Optional[float]],
    start: date = SERIES_START,
) -> list[SeriesPoint]:
    """Consecutive daily points starting at ``start``."""
    return [
        SeriesPoint(obs_date=start + timedelta(days=i), value=v)
        for i, v in enumerate(values)
    ]


@pytest.fixture
def make_series() -> Callable[..., list[SeriesPoint]]:
    return build_series


@pytest.fixture
def linear_series() -> list[SeriesPoint]:
    """30 daily values ``100 + d`` for ``d = 0..29``."""
    return build_series([100.0 + d for d in range(30)])


@pytest.fixture
def seasonal_series() -> list[SeriesPoint]:
    """400 days from 2015-01-01: weekly sine on top of a linear trend."""
    values = [
        1000.0 + 100.0 * math.sin(2 * math.pi * i / 7) + i
        for i in range(400)
    ]
    return build_series(values, start=date(2015, 1, 1))


@pytest.fixture
def fast_config() -> AppConfig:
    """Config tuned for quick test runs."""
    return AppConfig(
        features=FeatureConfig(lags=7, include_calendar=False),
        split=SplitConfig(eval_days=7),
        model=ModelConfig(hidden_layer_sizes=[8, 4], seed=7, max_iter=300),
        forecast=ForecastConfig(horizon_days=1),
        logging=LoggingConfig(log_file=""),
    )


class ExtrapolatingModel:
    """Predicts ``2 * lag_1 - lag_2``: exact on any linear series."""

    def __init__(self) -> None:
        self.fitted_rows: int = 0
        self.feature_cols: list[str] = []

    def fit(self, rows: list[dict[str, Any]], feature_cols: list[str], target_col: str = "y"):
        self.fitted_rows = len(rows)
        self.feature_cols = list(feature_cols)
        return self

    def predict(self, rows: list[dict[str, Any]]) -> list[float]:
        return [2 * r["lag_1"] - r["lag_2"] for r in rows]


class DroppingModel(ExtrapolatingModel):
    """Returns one prediction too few."""

    def predict(self, rows: list[dict[str, Any]]) -> list[float]:
        return super().predict(rows)[:-1]


@pytest.fixture
def extrapolating_model() -> ExtrapolatingModel:
    return ExtrapolatingModel()


@pytest.fixture
def dropping_model() -> DroppingModel:
    return DroppingModel()
