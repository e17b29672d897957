"""
One-hot encoding of calendar attributes with a frozen vocabulary.

Lifecycle
---------
1.  ``fit_vocabulary(training_rows, attributes)`` scans the training rows once
    and records, per attribute, the sorted set of distinct values.  The sort
    order is the indicator-column order.
2.  The resulting ``CategoryVocabulary`` is immutable.  It is passed
    explicitly to every later ``encode()`` call — training, evaluation and
    forward forecast rows alike.  It is never re-fitted on forecast rows.
3.  ``encode()`` rejects any value the vocabulary has not seen with
    ``UnknownCategoryError`` instead of silently adding a column.

Coverage caveat
---------------
Forecast rows only carry calendar values derived from real dates.  A full
year of training rows covers every weekday, month and monthday, and every
ISO week except week 53 of long ISO years.  Shorter training spans are a real
risk; ``check_vocabulary_coverage()`` logs a warning for them.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pageview_forecaster.exceptions import UnknownCategoryError
from pageview_forecaster.features.lag_builder import FeatureRow
from pageview_forecaster.utils.time_utils import span_days

logger = logging.getLogger(__name__)

# Days in the shortest span that covers every weekday, month and monthday.
FULL_YEAR_DAYS = 365


def indicator_column(attribute: str, value: int) -> str:
    """Indicator column name, e.g. ``weekday_3``."""
    return f"{attribute}_{value}"


class CategoryVocabulary(BaseModel):
    """Frozen attribute → ordered category values mapping.

    Attributes:
        attributes: Attribute name → values in indicator-column order.
                    Attribute order is the order given to ``fit_vocabulary``.
    """

    model_config = ConfigDict(frozen=True)

    attributes: dict[str, tuple[int, ...]]

    @field_validator("attributes")
    @classmethod
    def validate_attributes(cls, v: dict[str, tuple[int, ...]]) -> dict[str, tuple[int, ...]]:
        for name, values in v.items():
            if not values:
                raise ValueError(f"Vocabulary for '{name}' is empty.")
            if len(set(values)) != len(values):
                raise ValueError(f"Vocabulary for '{name}' has duplicate values: {values}.")
        return v

    @property
    def width(self) -> int:
        """Total number of indicator columns."""
        return sum(len(values) for values in self.attributes.values())

    def columns(self) -> list[str]:
        """All indicator column names in encoding order."""
        return [
            indicator_column(name, value)
            for name, values in self.attributes.items()
            for value in values
        ]

    def column_index(self, attribute: str, value: int) -> int:
        """Position of ``value`` within ``attribute``'s indicator block.

        Raises:
            UnknownCategoryError: If the attribute or value was never fitted.
        """
        values = self.attributes.get(attribute)
        if values is None or value not in values:
            raise UnknownCategoryError(attribute, value)
        return values.index(value)


def fit_vocabulary(rows: list[FeatureRow], attributes: list[str] | tuple[str, ...]) -> CategoryVocabulary:
    """Collect the sorted distinct values of each attribute in one pass.

    Raises:
        ValueError: If ``rows`` is empty or a row lacks a requested attribute.
    """
    if not rows:
        raise ValueError("Cannot fit a vocabulary on zero rows.")

    seen: dict[str, set[int]] = {name: set() for name in attributes}
    for row in rows:
        for name in attributes:
            if name not in row.calendar:
                raise ValueError(
                    f"Row {row.obs_date.isoformat()} has no '{name}' attribute; "
                    "build features with include_calendar=True."
                )
            seen[name].add(row.calendar[name])

    vocabulary = CategoryVocabulary(
        attributes={name: tuple(sorted(values)) for name, values in seen.items()}
    )
    logger.debug(
        "Vocabulary fitted on %d rows: %s",
        len(rows), {name: len(v) for name, v in vocabulary.attributes.items()},
    )
    return vocabulary


def encode(rows: list[FeatureRow], vocabulary: CategoryVocabulary) -> list[dict[str, Any]]:
    """Replace calendar attributes with indicator columns.

    Every row is validated against the vocabulary before any output is built,
    so a failure never leaves a partially encoded table behind.

    Returns:
        One dict per row: ``obs_date``, ``y``, ``lag_1 .. lag_p`` and one
        0/1 column per vocabulary entry (exactly one 1 per attribute).

    Raises:
        UnknownCategoryError: A row carries a value absent from the
            vocabulary, or lacks a vocabulary attribute altogether.
    """
    positions: list[dict[str, int]] = []
    for row in rows:
        row_positions: dict[str, int] = {}
        for name in vocabulary.attributes:
            if name not in row.calendar:
                raise UnknownCategoryError(name, None, row.obs_date)
            value = row.calendar[name]
            try:
                row_positions[name] = vocabulary.column_index(name, value)
            except UnknownCategoryError:
                raise UnknownCategoryError(name, value, row.obs_date) from None
        positions.append(row_positions)

    encoded: list[dict[str, Any]] = []
    for row, row_positions in zip(rows, positions):
        out = row.as_dict()
        for name in row.calendar:
            out.pop(name, None)
        for name, values in vocabulary.attributes.items():
            hot = row_positions[name]
            for i, value in enumerate(values):
                out[indicator_column(name, value)] = 1 if i == hot else 0
        encoded.append(out)
    return encoded


def check_vocabulary_coverage(rows: list[FeatureRow]) -> bool:
    """Warn when training rows span less than a full year.

    Returns:
        True if the rows span at least ``FULL_YEAR_DAYS`` days.
    """
    if not rows:
        return False
    first: date = rows[0].obs_date
    last: date = rows[-1].obs_date
    span = span_days(first, last)
    if span < FULL_YEAR_DAYS:
        logger.warning(
            "Training rows span only %d day(s) (%s .. %s); forecast dates may "
            "carry calendar values missing from the vocabulary.",
            span, first.isoformat(), last.isoformat(),
        )
        return False
    return True
