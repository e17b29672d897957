"""
Shared run bookkeeping for pipeline stages.

A stage subclass sets ``stage_name`` and implements ``_execute()``, which
does the work and returns the number of feature rows it handled.  Callers
only ever use ``run()``: it opens a ``RunMetadata`` record, delegates to
``_execute()`` and closes the record as ``success`` or ``failed``.  Failures
are recorded and then propagate unchanged.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from pageview_forecaster.config import AppConfig
from pageview_forecaster.models.meta import RunMetadata
from pageview_forecaster.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Base class for ``FeatureBuildStage`` and ``ForecastStage``.

    Attributes:
        stage_name: Value recorded as ``RunMetadata.pipeline_stage``.
        config:     Settings for every run of this stage instance.
        last_run:   Record of the latest ``run()``; None before the first.
    """

    stage_name: str

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.last_run: RunMetadata | None = None

    def run(self, **kwargs) -> RunMetadata:
        """Execute the stage once and return its finished run record.

        Keyword arguments are passed through to ``_execute()``.
        """
        record = self._open_run()
        try:
            rows = self._execute(run=record, **kwargs)
        except Exception as exc:
            record.status = "failed"
            record.error_message = str(exc)
            record.finished_at = utcnow()
            logger.error(
                "%s failed after %.2fs: %s [run %s]",
                self.stage_name, record.duration_seconds, exc, record.run_slug,
            )
            raise

        record.rows_processed = rows
        record.status = "success"
        record.finished_at = utcnow()
        logger.info(
            "%s finished in %.2fs with %d row(s) [run %s]",
            self.stage_name, record.duration_seconds, rows, record.run_slug,
        )
        return record

    def _open_run(self) -> RunMetadata:
        record = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            series_file=self.config.data.series_file,
            config_snapshot=self.config.model_dump(mode="json"),
            started_at=utcnow(),
        )
        self.last_run = record
        logger.info("%s started [run %s]", self.stage_name, record.run_slug)
        return record

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Do the stage's work; return the number of feature rows handled."""
