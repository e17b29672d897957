"""
Training-window normalization.

``fit`` computes the mean and sample standard deviation (n - 1 denominator)
of the observations strictly before the training cutoff.  Later observations
are never read: using them would leak evaluation data into the constants.

``apply`` and ``invert`` are elementwise affine maps::

    normalized = (value - center) / scale
    original   = normalized * scale + center

``None`` values pass through both unchanged.
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Iterable
from datetime import date
from typing import Optional, overload

from pageview_forecaster.exceptions import DegenerateInputError
from pageview_forecaster.models.forecast import NormalizationConstants
from pageview_forecaster.models.series import SeriesPoint

logger = logging.getLogger(__name__)


def fit(series: list[SeriesPoint], training_cutoff_date: date) -> NormalizationConstants:
    """Fit normalization constants on the training window.

    Args:
        series:               Full series; only points dated before the
                              cutoff are read.
        training_cutoff_date: First date that is NOT part of the training window.

    Returns:
        Frozen ``NormalizationConstants``.

    Raises:
        DegenerateInputError: Fewer than two non-null training observations,
            or all of them are equal (zero standard deviation).
    """
    values = [
        p.value for p in series
        if p.obs_date < training_cutoff_date and p.value is not None
    ]
    n = len(values)
    if n < 2:
        raise DegenerateInputError(
            f"Need at least 2 observed values before {training_cutoff_date.isoformat()} "
            f"to fit normalization constants; got {n}."
        )

    mean = math.fsum(values) / n
    variance = math.fsum((v - mean) ** 2 for v in values) / (n - 1)
    std = math.sqrt(variance)
    if std == 0.0:
        raise DegenerateInputError(
            f"Training window before {training_cutoff_date.isoformat()} is constant "
            f"(all {n} values equal {values[0]}); cannot scale by a zero deviation."
        )

    constants = NormalizationConstants(
        center=mean, scale=std, n_obs=n, fitted_before=training_cutoff_date,
    )
    logger.debug("Normalization fitted: center=%.4f scale=%.4f n=%d", mean, std, n)
    return constants


def apply(series: list[SeriesPoint], constants: NormalizationConstants) -> list[SeriesPoint]:
    """Return a new series with every non-null value normalized."""
    return [
        SeriesPoint(
            obs_date=p.obs_date,
            value=None if p.value is None else (p.value - constants.center) / constants.scale,
        )
        for p in series
    ]


@overload
def invert(values: float, constants: NormalizationConstants) -> float: ...
@overload
def invert(values: None, constants: NormalizationConstants) -> None: ...
@overload
def invert(
    values: Iterable[Optional[float]], constants: NormalizationConstants
) -> list[Optional[float]]: ...


def invert(values, constants):
    """Map a normalized scalar or sequence back to the original scale."""
    if values is None:
        return None
    if isinstance(values, numbers.Real):
        return float(values) * constants.scale + constants.center
    return [invert(v, constants) for v in values]
