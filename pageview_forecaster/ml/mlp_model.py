"""
Feed-forward neural network forecaster.

Model choice
------------
A multilayer perceptron with two hidden layers (scikit-learn
``MLPRegressor``) over ``p`` normalized lags plus one-hot calendar columns.
Inputs arrive centred and scaled by the normalizer; no further scaling is
applied here.

Determinism
-----------
Weight initialisation and minibatch shuffling are stochastic.  ``seed`` is
passed as ``random_state`` so repeated runs on the same rows give identical
predictions.

Missing values
--------------
``MLPRegressor`` cannot consume NaN.  Rows with a null target are skipped at
fit time; the feature builder never emits null lags, so inputs are complete.
"""

from __future__ import annotations

import logging
import warnings
from datetime import date
from typing import Any

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.neural_network import MLPRegressor

from pageview_forecaster.ml.feature_selector import (
    TARGET_COL,
    build_feature_matrix,
    build_target_vector,
)

logger = logging.getLogger(__name__)

MIN_TRAINING_ROWS = 10


class MLPForecaster:
    """Two-hidden-layer MLP over encoded feature rows.

    Satisfies both ``Trainable`` and ``Predictable`` from ``ml.base``.

    Attributes:
        MODEL_VERSION: Version string reported by ``describe()``.
    """

    MODEL_VERSION = "v1.0.0"

    def __init__(
        self,
        hidden_layer_sizes: tuple[int, ...] | list[int] = (10, 5),
        seed: int = 42,
        max_iter: int = 2000,
        learning_rate_init: float = 0.001,
        alpha: float = 0.0001,
        activation: str = "relu",
        solver: str = "adam",
        early_stopping: bool = False,
    ) -> None:
        if not hidden_layer_sizes or any(size < 1 for size in hidden_layer_sizes):
            raise ValueError(
                f"hidden_layer_sizes must be non-empty positive ints, got {hidden_layer_sizes}."
            )
        self._hyperparams: dict[str, Any] = {
            "hidden_layer_sizes": tuple(hidden_layer_sizes),
            "random_state":       seed,
            "max_iter":           max_iter,
            "learning_rate_init": learning_rate_init,
            "alpha":              alpha,
            "activation":         activation,
            "solver":             solver,
            "early_stopping":     early_stopping,
        }
        self._network: MLPRegressor | None = None
        self._feature_cols: list[str] = []
        self._training_rows: int = 0
        self._converged: bool = False
        self._trained_at: str = ""

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def is_fitted(self) -> bool:
        """True after fit() has been called successfully."""
        return self._network is not None

    @property
    def feature_cols(self) -> list[str]:
        return list(self._feature_cols)

    @property
    def seed(self) -> int:
        return self._hyperparams["random_state"]

    # ── Training ──────────────────────────────────────────────────────────────

    def fit(
        self,
        rows: list[dict[str, Any]],
        feature_cols: list[str],
        target_col: str = TARGET_COL,
    ) -> "MLPForecaster":
        """Fit the network on encoded rows.

        Args:
            rows:         Encoded training rows (from ``encoder.encode()``).
            feature_cols: Input columns, in ``feature_selector.feature_columns()`` order.
            target_col:   Target column name.

        Returns:
            ``self``, fitted.

        Raises:
            ValueError: Fewer than ``MIN_TRAINING_ROWS`` rows with a non-null target.
        """
        labelled = [r for r in rows if r.get(target_col) is not None]
        if len(labelled) < MIN_TRAINING_ROWS:
            raise ValueError(
                f"MLPForecaster.fit() needs >= {MIN_TRAINING_ROWS} rows with a "
                f"non-null '{target_col}'; got {len(labelled)} of {len(rows)}."
            )

        X = build_feature_matrix(labelled, feature_cols)
        y = build_target_vector(labelled, target_col)

        network = MLPRegressor(**self._hyperparams)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ConvergenceWarning)
            network.fit(X, y)
        self._converged = not any(
            issubclass(w.category, ConvergenceWarning) for w in caught
        )
        if not self._converged:
            logger.warning(
                "MLP did not converge within max_iter=%d (final loss %.6f)",
                self._hyperparams["max_iter"], network.loss_,
            )

        self._network = network
        self._feature_cols = list(feature_cols)
        self._training_rows = len(labelled)
        self._trained_at = date.today().isoformat()
        logger.info(
            "MLP fitted: layers=%s rows=%d features=%d iterations=%d loss=%.6f",
            self._hyperparams["hidden_layer_sizes"], len(labelled),
            len(feature_cols), network.n_iter_, network.loss_,
        )
        return self

    # ── Inference ─────────────────────────────────────────────────────────────

    def predict(self, rows: list[dict[str, Any]]) -> list[float]:
        """Predict the normalized target for each encoded row, in row order.

        Raises:
            RuntimeError: If the model has not been fitted.
        """
        if self._network is None:
            raise RuntimeError("Cannot predict with an unfitted MLPForecaster.")
        if not rows:
            return []
        X = build_feature_matrix(rows, self._feature_cols)
        preds = np.ravel(self._network.predict(X))
        return [float(p) for p in preds]

    # ── Introspection ─────────────────────────────────────────────────────────

    def describe(self) -> dict[str, Any]:
        """Summary of the fitted model for manifests and run reports."""
        hyperparams = dict(self._hyperparams)
        hyperparams["hidden_layer_sizes"] = list(hyperparams["hidden_layer_sizes"])
        return {
            "model_type":      "mlp",
            "model_version":   self.MODEL_VERSION,
            "trained_at":      self._trained_at,
            "hyperparameters": hyperparams,
            "feature_columns": self.feature_cols,
            "training_rows":   self._training_rows,
            "converged":       self._converged,
            "n_iter":          int(self._network.n_iter_) if self._network is not None else 0,
        }
