"""
Normalization constants and forecast output models.

Both models are frozen.  ``NormalizationConstants`` are computed once from the
training window and reused unchanged for every ``apply`` / ``invert`` call;
``ForecastPoint`` rows form the output table of a forecast run.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class NormalizationConstants(BaseModel):
    """Affine normalization constants fitted on the training window.

    Attributes:
        center:        Mean of the training-window values.
        scale:         Sample standard deviation of the training-window values.
        n_obs:         Number of non-null observations used to fit.
        fitted_before: Training cutoff; only dates strictly before it were used.
    """

    model_config = ConfigDict(frozen=True)

    center: float
    scale: float
    n_obs: int
    fitted_before: date

    @field_validator("center")
    @classmethod
    def validate_center(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"center must be finite, got {v}.")
        return v

    @field_validator("scale")
    @classmethod
    def validate_scale(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0.0:
            raise ValueError(f"scale must be a finite positive number, got {v}.")
        return v


class ForecastPoint(BaseModel):
    """One row of the forecast output table.

    Attributes:
        obs_date:              Date the prediction is for.
        normalized_prediction: Raw model output on the normalized scale.
        prediction:            Prediction mapped back to the original scale.
        actual:                Observed value on the original scale, or
                               ``None`` for forward forecasts.
    """

    model_config = ConfigDict(frozen=True)

    obs_date: date
    normalized_prediction: float
    prediction: float
    actual: Optional[float] = None

    @property
    def error(self) -> Optional[float]:
        """``actual - prediction``, or ``None`` without an actual."""
        if self.actual is None:
            return None
        return self.actual - self.prediction
