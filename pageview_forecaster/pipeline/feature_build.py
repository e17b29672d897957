"""
Feature build stage: series CSV → Parquet feature table + JSON manifest.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pageview_forecaster.features.dataset_builder import (
    build_feature_set,
    build_manifest,
    make_output_paths,
    write_feature_parquet,
    write_manifest,
)
from pageview_forecaster.ingestion.series_csv import parse_series_csv
from pageview_forecaster.models.meta import RunMetadata
from pageview_forecaster.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class FeatureBuildStage(PipelineStage):
    """Writes the encoded feature table for the configured series.

    After ``run()``, ``output_paths`` holds the written file paths.
    """

    stage_name = "feature_build"

    def _execute(self, run: RunMetadata, **kwargs) -> int:
        data = self.config.data
        series = parse_series_csv(
            Path(data.series_file),
            date_column=data.date_column,
            value_column=data.value_column,
        )
        feature_set = build_feature_set(series, self.config)

        paths = make_output_paths(
            data.output_dir, series[0].obs_date, series[-1].obs_date
        )
        rows = write_feature_parquet(feature_set, paths["features"])
        manifest = build_manifest(
            feature_set, series, paths["features"], run.run_slug, self.config
        )
        write_manifest(manifest, paths["manifest"])
        self.output_paths = paths
        return rows
