"""
Reporting layer — flat CSV / JSON exports of forecast runs.

Modules
-------
export : export_to_csv(), export_to_json(), forecast_points_to_records(),
         build_forecast_report()
"""
