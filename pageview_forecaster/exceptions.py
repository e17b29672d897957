"""
Pipeline error taxonomy.

Every error is a local, synchronous failure raised where it is detected.
The computation is deterministic, so none of them is ever retried.

All subclass ``ValueError`` so callers that already guard input validation
with ``except ValueError`` keep working.
"""

from __future__ import annotations

from datetime import date


class ForecastError(ValueError):
    """Base class for all pipeline failures."""


class DegenerateInputError(ForecastError):
    """The training window has zero variance (or too few observations)."""


class InsufficientHistoryError(ForecastError):
    """Fewer than ``p`` real observations precede a requested forecast row."""

    def __init__(self, target_date: date, missing: list[date]) -> None:
        self.target_date = target_date
        self.missing = missing
        shown = ", ".join(d.isoformat() for d in missing[:5])
        suffix = " …" if len(missing) > 5 else ""
        super().__init__(
            f"Cannot build features for {target_date.isoformat()}: "
            f"{len(missing)} lag date(s) have no observation ({shown}{suffix})."
        )


class UnknownCategoryError(ForecastError):
    """A calendar value is absent from the frozen training vocabulary."""

    def __init__(self, attribute: str, value: object, obs_date: date | None = None) -> None:
        self.attribute = attribute
        self.value = value
        self.obs_date = obs_date
        where = f" (row {obs_date.isoformat()})" if obs_date is not None else ""
        super().__init__(
            f"Value {value!r} for '{attribute}'{where} was not seen when the "
            "vocabulary was fitted. Train on at least a full year of data to "
            "cover every calendar value."
        )


class MisalignedRowsError(ForecastError):
    """The model returned a different number of predictions than rows given."""

    def __init__(self, n_rows: int, n_predictions: int) -> None:
        self.n_rows = n_rows
        self.n_predictions = n_predictions
        super().__init__(
            f"Model returned {n_predictions} prediction(s) for {n_rows} row(s); "
            "predictions are matched to rows by position and cannot be aligned."
        )
