"""
Tests for the frozen calendar vocabulary and one-hot encoding.

The central property: once fitted on training rows, the vocabulary never
changes, and any unseen value is rejected rather than silently encoded.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from pageview_forecaster.exceptions import UnknownCategoryError
from pageview_forecaster.features.encoder import (
    CategoryVocabulary,
    check_vocabulary_coverage,
    encode,
    fit_vocabulary,
    indicator_column,
)
from pageview_forecaster.features.lag_builder import FeatureRow, transform

START = date(2024, 1, 1)   # Monday


def _row(d: date, **calendar: int) -> FeatureRow:
    return FeatureRow(obs_date=d, y=0.0, lags=(0.0,), calendar=calendar)


class TestFitVocabulary:
    def test_values_sorted_ascending(self):
        rows = [_row(START, weekday=3), _row(START, weekday=1), _row(START, weekday=2)]
        vocab = fit_vocabulary(rows, ["weekday"])
        assert vocab.attributes == {"weekday": (1, 2, 3)}

    def test_attribute_order_preserved(self):
        rows = [_row(START, weekday=1, month=1)]
        vocab = fit_vocabulary(rows, ["month", "weekday"])
        assert list(vocab.attributes) == ["month", "weekday"]
        assert vocab.columns() == ["month_1", "weekday_1"]

    def test_full_week_width(self, make_series):
        rows = transform(make_series([float(i) for i in range(15)]), p=1, attributes=["weekday"])
        vocab = fit_vocabulary(rows, ["weekday"])
        assert vocab.width == 7

    def test_empty_rows_raise(self):
        with pytest.raises(ValueError):
            fit_vocabulary([], ["weekday"])

    def test_missing_attribute_raises(self):
        with pytest.raises(ValueError, match="month"):
            fit_vocabulary([_row(START, weekday=1)], ["weekday", "month"])

    def test_vocabulary_is_frozen(self):
        vocab = fit_vocabulary([_row(START, weekday=1)], ["weekday"])
        with pytest.raises(ValidationError):
            vocab.attributes = {"weekday": (1, 2)}

    def test_duplicate_values_rejected(self):
        with pytest.raises(ValidationError):
            CategoryVocabulary(attributes={"weekday": (1, 1)})


class TestEncode:
    def test_exactly_one_hot_per_attribute(self):
        vocab = CategoryVocabulary(attributes={"weekday": (1, 2, 3), "month": (1, 2)})
        out = encode([_row(START, weekday=2, month=1)], vocab)[0]
        assert [out[c] for c in ["weekday_1", "weekday_2", "weekday_3"]] == [0, 1, 0]
        assert [out[c] for c in ["month_1", "month_2"]] == [1, 0]

    def test_raw_calendar_keys_removed(self):
        vocab = CategoryVocabulary(attributes={"weekday": (1,)})
        out = encode([_row(START, weekday=1)], vocab)[0]
        assert "weekday" not in out
        assert set(out) == {"obs_date", "y", "lag_1", "weekday_1"}

    def test_same_vocabulary_same_columns(self):
        """Training and forecast rows encode to identical column layouts."""
        vocab = CategoryVocabulary(attributes={"weekday": (1, 2, 3, 4, 5, 6, 7)})
        train = encode([_row(START, weekday=1)], vocab)[0]
        later = encode([_row(START + timedelta(days=30), weekday=4)], vocab)[0]
        assert list(train) == list(later)

    def test_unknown_value_raises(self):
        vocab = CategoryVocabulary(attributes={"weekday": (1, 2)})
        bad_date = START + timedelta(days=2)
        with pytest.raises(UnknownCategoryError) as exc_info:
            encode([_row(bad_date, weekday=3)], vocab)
        assert exc_info.value.attribute == "weekday"
        assert exc_info.value.value == 3
        assert exc_info.value.obs_date == bad_date

    def test_unknown_value_does_not_extend_vocabulary(self):
        vocab = CategoryVocabulary(attributes={"weekday": (1, 2)})
        with pytest.raises(UnknownCategoryError):
            encode([_row(START, weekday=1), _row(START, weekday=9)], vocab)
        assert vocab.attributes == {"weekday": (1, 2)}
        assert vocab.width == 2

    def test_missing_attribute_on_row_raises(self):
        vocab = CategoryVocabulary(attributes={"weekday": (1,)})
        with pytest.raises(UnknownCategoryError):
            encode([_row(START)], vocab)

    def test_indicator_column_name(self):
        assert indicator_column("monthday", 31) == "monthday_31"


class TestCoverage:
    def test_short_span_warns(self, caplog):
        rows = [_row(START + timedelta(days=i), weekday=1) for i in range(30)]
        with caplog.at_level(logging.WARNING, logger="pageview_forecaster.features.encoder"):
            assert check_vocabulary_coverage(rows) is False
        assert "span only 30 day" in caplog.text

    def test_full_year_passes(self):
        rows = [_row(START, weekday=1), _row(START + timedelta(days=364), weekday=1)]
        assert check_vocabulary_coverage(rows) is True
