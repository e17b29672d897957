"""
Calendar attributes derived from a date.

Convention (fixed; it determines vocabulary cardinality):

  ==========  ===============================================  ===========
  attribute   definition                                       values
  ==========  ===============================================  ===========
  weekday     ISO weekday, Monday = 1 … Sunday = 7             7
  month       calendar month                                   12
  monthday    day of the month                                 up to 31
  week        ISO 8601 week number (``date.isocalendar()``)    up to 53
  ==========  ===============================================  ===========

ISO week numbering means the first days of January can belong to week 52 or
53 of the previous ISO year, and week 53 only exists in long ISO years.
"""

from __future__ import annotations

from datetime import date

from pageview_forecaster.config import CALENDAR_ATTRIBUTES


def calendar_attributes(
    d: date,
    attributes: tuple[str, ...] | list[str] = CALENDAR_ATTRIBUTES,
) -> dict[str, int]:
    """Return the requested calendar attributes of ``d``.

    Raises:
        ValueError: If an attribute name is not one of ``CALENDAR_ATTRIBUTES``.
    """
    iso = d.isocalendar()
    all_values = {
        "weekday":  iso.weekday,
        "month":    d.month,
        "monthday": d.day,
        "week":     iso.week,
    }
    try:
        return {name: all_values[name] for name in attributes}
    except KeyError as exc:
        raise ValueError(
            f"Unknown calendar attribute {exc.args[0]!r}. "
            f"Must be one of {list(CALENDAR_ATTRIBUTES)}."
        ) from None
