"""
Model training entry points.

``fit_model()`` is the narrow interface: encoded rows, input columns, layer
widths and a seed in, fitted model out.  ``train_model()`` feeds it the rest
of ``ModelConfig``.  Splitting happens upstream (``splits.py``), so the rows
passed here are already restricted to dates before the cutoff.
"""

from __future__ import annotations

import logging
from typing import Any

from pageview_forecaster.config import ModelConfig
from pageview_forecaster.ml.feature_selector import TARGET_COL
from pageview_forecaster.ml.mlp_model import MLPForecaster

logger = logging.getLogger(__name__)


def fit_model(
    training_rows: list[dict[str, Any]],
    feature_cols: list[str],
    hidden_layer_sizes: tuple[int, ...] | list[int] = (10, 5),
    seed: int = 42,
    target_col: str = TARGET_COL,
    **hyperparams: Any,
) -> MLPForecaster:
    """Fit an ``MLPForecaster`` on encoded training rows.

    ``hyperparams`` go straight to ``MLPForecaster`` (``max_iter``,
    ``alpha``, ``solver`` ...).

    Raises:
        ValueError: Too few labelled training rows, or invalid layer sizes.
    """
    if training_rows:
        logger.info(
            "Training on %d rows (%s .. %s), layers=%s seed=%d",
            len(training_rows),
            training_rows[0]["obs_date"], training_rows[-1]["obs_date"],
            list(hidden_layer_sizes), seed,
        )
    model = MLPForecaster(hidden_layer_sizes=hidden_layer_sizes, seed=seed, **hyperparams)
    return model.fit(training_rows, feature_cols, target_col=target_col)


def build_model(config: ModelConfig) -> MLPForecaster:
    """Instantiate an unfitted forecaster from config."""
    return MLPForecaster(
        hidden_layer_sizes=config.hidden_layer_sizes,
        seed=config.seed,
        **_extra_hyperparams(config),
    )


def train_model(
    training_rows: list[dict[str, Any]],
    feature_cols: list[str],
    config: ModelConfig,
    target_col: str = TARGET_COL,
) -> MLPForecaster:
    """``fit_model()`` with every hyperparameter taken from ``config``."""
    return fit_model(
        training_rows, feature_cols,
        hidden_layer_sizes=config.hidden_layer_sizes,
        seed=config.seed,
        target_col=target_col,
        **_extra_hyperparams(config),
    )


def _extra_hyperparams(config: ModelConfig) -> dict[str, Any]:
    return {
        "max_iter":           config.max_iter,
        "learning_rate_init": config.learning_rate_init,
        "alpha":              config.alpha,
        "activation":         config.activation,
        "solver":             config.solver,
        "early_stopping":     config.early_stopping,
    }
