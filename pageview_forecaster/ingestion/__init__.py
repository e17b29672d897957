"""
Ingestion layer — reads the daily pageview series from disk.

Submodules:
  series_csv — CSV parser producing a validated, ascending ``list[SeriesPoint]``
"""
