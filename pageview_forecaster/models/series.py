"""
Daily series records.

A series is a plain ``list[SeriesPoint]`` sorted ascending by ``obs_date``
with at most one point per date.  ``value`` is ``None`` where the source had
no observation for that day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class SeriesPoint:
    """One daily observation.

    Attributes:
        obs_date: Calendar date of the observation.
        value:    Observed value, or ``None`` if unobserved.
    """

    obs_date: date
    value: Optional[float]


def value_lookup(series: list[SeriesPoint]) -> dict[date, Optional[float]]:
    """Return a ``{obs_date: value}`` dict for O(1) lag lookups."""
    return {p.obs_date: p.value for p in series}
