"""
End-to-end tests for the train / evaluate / forecast flow.

Scenario: 30 daily values ``100 + d``, ``p = 7``, cutoff on day 23, no
calendar features.  That leaves 16 training rows (days 7..22) and 7
evaluation rows (days 23..29).
"""

from __future__ import annotations

import math
from datetime import date, timedelta

import pytest

from pageview_forecaster.exceptions import MisalignedRowsError
from pageview_forecaster.features import normalizer
from pageview_forecaster.pipeline.forecast import run_forecast_pipeline

START = date(2024, 1, 1)
CUTOFF = START + timedelta(days=23)


class TestEndToEndScenario:
    def test_evaluation_rows_and_lags(self, linear_series, fast_config, extrapolating_model):
        result = run_forecast_pipeline(
            linear_series, fast_config, model=extrapolating_model, cutoff_date=CUTOFF
        )
        fs = result.feature_set
        assert len(fs.training_rows) == 16
        assert len(fs.evaluation_rows) == 7
        assert extrapolating_model.fitted_rows == 16

        scale = math.sqrt(46.0)
        for row in fs.evaluation_rows:
            d = (row["obs_date"] - START).days
            for k in range(1, 8):
                assert row[f"lag_{k}"] == pytest.approx((100 + d - k - 111) / scale)

    def test_exact_target_rescales_to_observed_value(self, linear_series, fast_config):
        fs = run_forecast_pipeline(
            linear_series, fast_config, model=_TargetEcho(), cutoff_date=CUTOFF
        ).feature_set
        for row in fs.evaluation_rows:
            d = (row["obs_date"] - START).days
            assert normalizer.invert(row["y"], fs.constants) == pytest.approx(100.0 + d)

    def test_predictions_paired_with_dates_and_actuals(
        self, linear_series, fast_config, extrapolating_model
    ):
        result = run_forecast_pipeline(
            linear_series, fast_config, model=extrapolating_model, cutoff_date=CUTOFF
        )
        assert [p.obs_date for p in result.evaluation] == [
            START + timedelta(days=d) for d in range(23, 30)
        ]
        for p in result.evaluation:
            d = (p.obs_date - START).days
            assert p.actual == 100.0 + d
            assert p.prediction == pytest.approx(100.0 + d)
        assert result.metrics["mae"] == pytest.approx(0.0, abs=1e-9)
        assert result.metrics["n_eval"] == 7.0

    def test_next_day_forecast(self, linear_series, fast_config, extrapolating_model):
        result = run_forecast_pipeline(
            linear_series, fast_config, model=extrapolating_model, cutoff_date=CUTOFF
        )
        assert result.next_date == START + timedelta(days=30)
        assert result.next_value == pytest.approx(130.0)

    def test_misaligned_model_fails(self, linear_series, fast_config, dropping_model):
        with pytest.raises(MisalignedRowsError):
            run_forecast_pipeline(
                linear_series, fast_config, model=dropping_model, cutoff_date=CUTOFF
            )


class TestWithNeuralNetwork:
    def test_default_model_runs(self, linear_series, fast_config):
        result = run_forecast_pipeline(linear_series, fast_config, cutoff_date=CUTOFF)
        assert len(result.evaluation) == 7
        assert all(math.isfinite(p.prediction) for p in result.evaluation)
        assert result.model_summary["model_type"] == "mlp"
        assert result.model_summary["training_rows"] == 16
        assert set(result.metrics) >= {"mae", "rmse"}

    def test_seeded_runs_are_identical(self, linear_series, fast_config):
        a = run_forecast_pipeline(linear_series, fast_config, cutoff_date=CUTOFF)
        b = run_forecast_pipeline(linear_series, fast_config, cutoff_date=CUTOFF)
        assert [p.prediction for p in a.evaluation] == [p.prediction for p in b.evaluation]
        assert a.next_value == b.next_value

    def test_calendar_features_with_full_year(self, seasonal_series, fast_config):
        from pageview_forecaster.config import FeatureConfig, SplitConfig

        config = fast_config.model_copy(update={
            "features": FeatureConfig(lags=7),
            "split": SplitConfig(eval_days=28),
        })
        result = run_forecast_pipeline(seasonal_series, config)
        assert result.feature_set.vocabulary is not None
        assert len(result.evaluation) == 28
        assert result.next_date == date(2016, 2, 5)


class _TargetEcho:
    """Predicts each row's own normalized target."""

    def fit(self, rows, feature_cols, target_col="y"):
        return self

    def predict(self, rows):
        return [r["y"] if r["y"] is not None else 0.0 for r in rows]
