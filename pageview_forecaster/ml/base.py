"""
Capability protocols for forecasting backends.

The pipeline never looks inside a model.  It only needs something it can fit
on encoded rows and something it can ask for one prediction per row, in row
order.  Any backend satisfying these protocols can replace ``MLPForecaster``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Trainable(Protocol):
    """A model that can be fitted on encoded feature rows."""

    def fit(
        self,
        rows: list[dict[str, Any]],
        feature_cols: list[str],
        target_col: str = "y",
    ) -> Any: ...


@runtime_checkable
class Predictable(Protocol):
    """A fitted model returning one prediction per row, in row order."""

    def predict(self, rows: list[dict[str, Any]]) -> list[float]: ...
