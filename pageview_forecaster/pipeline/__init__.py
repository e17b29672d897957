"""
Pipeline stages.

Modules
-------
base          : PipelineStage ABC — run bookkeeping around ``_execute()``.
feature_build : FeatureBuildStage — series CSV → Parquet feature table + manifest.
forecast      : ForecastStage / run_forecast_pipeline() — train, evaluate, forecast.
"""
