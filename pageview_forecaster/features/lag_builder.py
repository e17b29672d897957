"""
Lag and calendar features: a daily series becomes a supervised-learning table.

How it works
------------
1.  Build a ``{obs_date: value}`` lookup for the series.
2.  For each date ``d`` in ascending order, look up ``d - 1 … d - p``.
3.  Emit a ``FeatureRow`` only if all ``p`` lag dates have a real (non-null)
    observation.  Rows lacking complete history (the first ``p`` dates, or
    any date whose window crosses a gap) are omitted, never zero-filled.
4.  ``y`` is the value at ``d`` and may be ``None`` (unobserved target); such
    rows are kept so they can still be predicted, and the trainer skips them.

Calendar attributes follow the ISO convention documented in ``calendar.py``.

The builder is stateless: forecast rows for future dates are built from
trailing history alone via ``build_forecast_row()``, without re-reading any
training rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from pageview_forecaster.config import CALENDAR_ATTRIBUTES
from pageview_forecaster.exceptions import InsufficientHistoryError
from pageview_forecaster.features.calendar import calendar_attributes
from pageview_forecaster.models.series import SeriesPoint, value_lookup


@dataclass(frozen=True)
class FeatureRow:
    """One supervised example.

    Attributes:
        obs_date: Date of the target observation.
        y:        Normalized value at ``obs_date``, or ``None`` if unknown.
        lags:     ``lags[k - 1]`` is the normalized value at ``obs_date - k``.
        calendar: Calendar attribute name → integer value (empty if disabled).
    """

    obs_date: date
    y: Optional[float]
    lags: tuple[float, ...]
    calendar: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Flatten to ``obs_date``, ``y``, ``lag_1 .. lag_p`` and calendar keys."""
        out: dict[str, Any] = {"obs_date": self.obs_date, "y": self.y}
        for k, v in enumerate(self.lags, start=1):
            out[lag_column(k)] = v
        out.update(self.calendar)
        return out


def lag_column(k: int) -> str:
    """Column name of the ``k``-th lag."""
    return f"lag_{k}"


def transform(
    series: list[SeriesPoint],
    p: int,
    include_calendar: bool = True,
    attributes: tuple[str, ...] | list[str] = CALENDAR_ATTRIBUTES,
) -> list[FeatureRow]:
    """Build one feature row per date that has complete lag history.

    Args:
        series:           Ascending daily series (typically normalized).
        p:                Number of lags per row (>= 1).
        include_calendar: Whether to attach calendar attributes.
        attributes:       Which calendar attributes to attach.

    Returns:
        Feature rows in ascending date order.  For a gap-free series with no
        nulls this is ``len(series) - p`` rows.

    Raises:
        ValueError: If ``p < 1``.
    """
    _check_p(p)
    lookup = value_lookup(series)

    rows: list[FeatureRow] = []
    for point in series:
        lags = _lag_values(lookup, point.obs_date, p)
        if lags is None:
            continue
        rows.append(FeatureRow(
            obs_date=point.obs_date,
            y=point.value,
            lags=lags,
            calendar=(
                calendar_attributes(point.obs_date, attributes) if include_calendar else {}
            ),
        ))
    return rows


def build_forecast_row(
    history: list[SeriesPoint],
    target_date: date,
    p: int,
    include_calendar: bool = True,
    attributes: tuple[str, ...] | list[str] = CALENDAR_ATTRIBUTES,
) -> FeatureRow:
    """Build the feature row for a date with no observed target.

    Only ``target_date - 1 … target_date - p`` are read from ``history``;
    the history may be disjoint from whatever rows the model was trained on.

    Raises:
        ValueError: If ``p < 1``.
        InsufficientHistoryError: If any of the ``p`` prior dates is absent
            from ``history`` or has a null value.
    """
    _check_p(p)
    lookup = value_lookup(history)
    lags = _lag_values(lookup, target_date, p)
    if lags is None:
        missing = [
            target_date - timedelta(days=k)
            for k in range(1, p + 1)
            if lookup.get(target_date - timedelta(days=k)) is None
        ]
        raise InsufficientHistoryError(target_date, missing)

    return FeatureRow(
        obs_date=target_date,
        y=None,
        lags=lags,
        calendar=calendar_attributes(target_date, attributes) if include_calendar else {},
    )


# ── Internal helpers ───────────────────────────────────────────────────────────


def _check_p(p: int) -> None:
    if p < 1:
        raise ValueError(f"p (number of lags) must be >= 1, got {p}.")


def _lag_values(
    lookup: dict[date, Optional[float]],
    d: date,
    p: int,
) -> Optional[tuple[float, ...]]:
    """Return ``(value(d-1), …, value(d-p))`` or ``None`` if any is missing."""
    lags: list[float] = []
    for k in range(1, p + 1):
        v = lookup.get(d - timedelta(days=k))
        if v is None:
            return None
        lags.append(v)
    return tuple(lags)
