"""
Run records.

A ``RunMetadata`` is created when a pipeline stage starts and updated in
place as it finishes.  It keeps the full config snapshot, so a run can be
reproduced from the record and the same series file alone.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

PIPELINE_STAGES = ("feature_build", "forecast")
RUN_STATUSES = ("started", "success", "failed")


def _check_member(field: str, value: str, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(f"{field} must be one of {list(allowed)}, got '{value}'.")
    return value


class RunMetadata(BaseModel):
    """One execution of a pipeline stage.

    Attributes:
        run_slug:        Random UUID4 string for this run.
        pipeline_stage:  Stage that produced the record.
        status:          ``started`` until the stage returns or raises.
        series_file:     Configured input series path.
        config_snapshot: ``AppConfig`` as JSON-compatible dict.
        rows_processed:  Feature rows handled by the stage.
        error_message:   ``str(exc)`` of the failure, when failed.
        started_at:      UTC start time.
        finished_at:     UTC end time; None while running.
    """

    # Mutable, but every assignment is re-validated.
    model_config = ConfigDict(validate_assignment=True)

    run_slug: str
    pipeline_stage: str
    status: str = "started"
    series_file: Optional[str] = None
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def check_stage(cls, v: str) -> str:
        return _check_member("pipeline_stage", v, PIPELINE_STAGES)

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str) -> str:
        return _check_member("status", v, RUN_STATUSES)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Wall time of a finished run."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
