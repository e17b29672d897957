"""Feature engineering package for the pageview forecaster.

Modules
-------
normalizer      — Training-window mean / std normalization and its inverse
calendar        — Calendar attributes derived from a date (ISO conventions)
lag_builder     — Supervised rows: target ``y`` plus ``lag_1 .. lag_p``
encoder         — Frozen CategoryVocabulary + one-hot indicator encoding
dataset_builder — Parquet + JSON manifest output of the encoded feature table
"""
