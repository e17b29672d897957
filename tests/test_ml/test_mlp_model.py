"""
Tests for MLPForecaster.

Training data is a small synthetic regression problem: ``y`` is a fixed
linear combination of two lag columns, which a two-hidden-layer network
fits easily.  Iteration counts are kept low so the suite stays fast.
"""

from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pytest

from pageview_forecaster.config import ModelConfig
from pageview_forecaster.ml.base import Predictable, Trainable
from pageview_forecaster.ml.mlp_model import MIN_TRAINING_ROWS, MLPForecaster
from pageview_forecaster.ml.trainer import build_model, fit_model, train_model

_COLS = ["lag_1", "lag_2"]


def _rows(n: int, seed: int = 0) -> list[dict]:
    rng = np.random.default_rng(seed)
    out = []
    for i in range(n):
        a, b = rng.normal(size=2)
        out.append({
            "obs_date": date(2024, 1, 1) + timedelta(days=i),
            "y": 0.6 * a - 0.3 * b,
            "lag_1": a,
            "lag_2": b,
        })
    return out


def _model(**kwargs) -> MLPForecaster:
    params = {"hidden_layer_sizes": (8, 4), "seed": 3, "max_iter": 300}
    params.update(kwargs)
    return MLPForecaster(**params)


class TestMLPForecaster:
    def test_satisfies_protocols(self):
        model = _model()
        assert isinstance(model, Trainable)
        assert isinstance(model, Predictable)

    def test_fit_returns_self(self):
        model = _model()
        assert model.fit(_rows(40), _COLS) is model
        assert model.is_fitted
        assert model.feature_cols == _COLS

    def test_predict_one_value_per_row(self):
        model = _model().fit(_rows(40), _COLS)
        preds = model.predict(_rows(5, seed=1))
        assert len(preds) == 5
        assert all(isinstance(p, float) for p in preds)

    def test_predict_empty(self):
        model = _model().fit(_rows(40), _COLS)
        assert model.predict([]) == []

    def test_same_seed_same_predictions(self):
        rows = _rows(40)
        test_rows = _rows(5, seed=9)
        a = _model(seed=11).fit(rows, _COLS).predict(test_rows)
        b = _model(seed=11).fit(rows, _COLS).predict(test_rows)
        assert a == b

    def test_null_targets_skipped(self):
        rows = _rows(40)
        rows[0]["y"] = None
        model = _model().fit(rows, _COLS)
        assert model.describe()["training_rows"] == 39

    def test_too_few_rows_raises(self):
        with pytest.raises(ValueError, match=str(MIN_TRAINING_ROWS)):
            _model().fit(_rows(MIN_TRAINING_ROWS - 1), _COLS)

    def test_predict_before_fit_raises(self):
        with pytest.raises(RuntimeError):
            _model().predict(_rows(3))

    def test_invalid_layer_sizes(self):
        with pytest.raises(ValueError):
            MLPForecaster(hidden_layer_sizes=(10, 0))

    def test_describe(self):
        model = _model().fit(_rows(40), _COLS)
        info = model.describe()
        assert info["model_type"] == "mlp"
        assert info["hyperparameters"]["hidden_layer_sizes"] == [8, 4]
        assert info["hyperparameters"]["random_state"] == 3
        assert info["feature_columns"] == _COLS
        assert info["n_iter"] > 0

    def test_convergence_warning_logged_not_raised(self, caplog):
        model = _model(max_iter=2)
        model.fit(_rows(40), _COLS)
        assert model.describe()["converged"] is False
        assert "did not converge" in caplog.text


class TestTrainer:
    def test_build_model_from_config(self):
        model = build_model(ModelConfig(hidden_layer_sizes=[6, 3], seed=5))
        assert model.seed == 5
        assert not model.is_fitted

    def test_train_model_fits(self):
        cfg = ModelConfig(hidden_layer_sizes=[6, 3], max_iter=200)
        model = train_model(_rows(30), _COLS, cfg)
        assert model.is_fitted

    def test_fit_model_interface(self):
        model = fit_model(_rows(30), _COLS, hidden_layer_sizes=[5, 3], seed=1, max_iter=200)
        assert model.is_fitted
        assert model.describe()["hyperparameters"]["hidden_layer_sizes"] == [5, 3]
        assert len(model.predict(_rows(4, seed=2))) == 4
