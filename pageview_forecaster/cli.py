"""
Command-line interface.

    pageview-forecaster validate-config [--config PATH] [--full]
    pageview-forecaster build-features  [--series-file CSV] [--cutoff-date D] ...
    pageview-forecaster run-forecast    [--horizon N] [--seed S] [--no-export] ...

Every command loads ``AppConfig``, applies its options on top, configures
logging, and then runs one pipeline stage.  Expected failures (bad input,
bad config) print ``[ERROR] ...`` and exit with status 1.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

app = typer.Typer(
    name="pageview-forecaster",
    help="Forecast daily pageviews with a small feed-forward neural network.",
    add_completion=False,
    no_args_is_help=True,
)

_CONFIG_OPTION_HELP = "TOML config file (default: config/default.toml)."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _fail(message: str) -> NoReturn:
    typer.echo(f"[ERROR] {message}", err=True)
    raise typer.Exit(code=1)


def _load(config_path: Optional[str]):
    from pageview_forecaster.config import load_config

    try:
        return load_config(Path(config_path) if config_path else None)
    except FileNotFoundError as exc:
        _fail(str(exc))
    except ValueError as exc:
        _fail(f"Invalid configuration: {exc}")


def _prepare(config_path: Optional[str], **overrides: Any):
    """Load config, apply non-None command options, and set up logging.

    Option names map onto config fields: ``series_file``, ``output_dir``,
    ``cutoff_date`` (ISO string), ``horizon`` and ``seed``.
    """
    from pageview_forecaster.config import AppConfig
    from pageview_forecaster.utils.logging import configure_logging

    config = _load(config_path)
    raw = config.model_dump()
    targets = {
        "series_file": ("data", "series_file"),
        "output_dir":  ("data", "output_dir"),
        "cutoff_date": ("split", "cutoff_date"),
        "horizon":     ("forecast", "horizon_days"),
        "seed":        ("model", "seed"),
    }
    for option, value in overrides.items():
        if value is None:
            continue
        if option == "cutoff_date":
            try:
                value = date.fromisoformat(value)
            except ValueError:
                _fail(f"--cutoff-date must be YYYY-MM-DD, got '{value}'.")
        section, key = targets[option]
        raw[section][key] = value

    try:
        config = AppConfig(**raw)
    except ValueError as exc:
        _fail(f"Invalid option: {exc}")

    configure_logging(config.logging)
    return config


def _run_stage(stage, **kwargs):
    from pageview_forecaster.exceptions import ForecastError

    try:
        return stage.run(**kwargs)
    except (FileNotFoundError, ForecastError, ValueError) as exc:
        _fail(str(exc))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    show_full: bool = typer.Option(False, "--full", help="Also dump every field as JSON."),
) -> None:
    """Check that the configuration loads and summarize it."""
    config = _load(config_path)

    features = config.features
    calendar = ", ".join(features.calendar_attributes) if features.include_calendar else "off"
    cutoff = config.split.cutoff_date or f"last {config.split.eval_days} day(s) held out"
    summary = [
        ("Series file", config.data.series_file),
        ("Lags (p)", features.lags),
        ("Calendar", calendar),
        ("Cutoff", cutoff),
        ("Hidden layers", config.model.hidden_layer_sizes),
        ("Seed", config.model.seed),
        ("Horizon", f"{config.forecast.horizon_days}d"),
        ("Log level", config.logging.level),
    ]
    for label, value in summary:
        typer.echo(f"  {label + ':':<18}{value}")

    if show_full:
        typer.echo("")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))

    typer.echo("[OK] Config valid.")


@app.command("build-features")
def build_features(
    series_file: Optional[str] = typer.Option(
        None, "--series-file", "-f", help="Series CSV to read instead of data.series_file.",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Directory for the features/ output folder.",
    ),
    cutoff_date: Optional[str] = typer.Option(
        None, "--cutoff-date", help="First evaluation date (YYYY-MM-DD).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Write the encoded feature table (Parquet) and its JSON manifest.

    \b
    Normalization constants and the calendar vocabulary are fitted on dates
    before the cutoff only, then applied to every row.
    """
    from pageview_forecaster.pipeline.feature_build import FeatureBuildStage

    config = _prepare(
        config_path, series_file=series_file, output_dir=output_dir, cutoff_date=cutoff_date,
    )
    stage = FeatureBuildStage(config=config)
    run = _run_stage(stage)

    typer.echo(f"  Rows written: {run.rows_processed}")
    for kind, path in stage.output_paths.items():
        typer.echo(f"  {kind:<9} {path}")
    typer.echo("[OK] Features built.")


@app.command("run-forecast")
def run_forecast(
    series_file: Optional[str] = typer.Option(
        None, "--series-file", "-f", help="Series CSV to read instead of data.series_file.",
    ),
    cutoff_date: Optional[str] = typer.Option(
        None, "--cutoff-date", help="First evaluation date (YYYY-MM-DD).",
    ),
    horizon: Optional[int] = typer.Option(
        None, "--horizon", help="Days to forecast past the last observation.",
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Seed for weight initialisation and shuffling.",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Directory for forecast CSV / JSON exports.",
    ),
    no_export: bool = typer.Option(
        False, "--no-export", help="Print results without writing files.",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Train, evaluate on the held-out dates, and forecast forward.

    Prints one line per evaluation date (normalized prediction, prediction,
    actual), MAE / RMSE / MAPE on the original scale, and the forecast.
    """
    from pageview_forecaster.pipeline.forecast import ForecastStage
    from pageview_forecaster.reporting.export import write_forecast_exports

    config = _prepare(
        config_path, series_file=series_file, output_dir=output_dir,
        cutoff_date=cutoff_date, horizon=horizon, seed=seed,
    )
    stage = ForecastStage(config=config)
    run = _run_stage(stage)

    result = stage.result
    fs = result.feature_set
    typer.echo(
        f"cutoff {fs.cutoff_date} | {len(fs.training_rows)} training row(s), "
        f"{len(fs.evaluation_rows)} evaluation row(s)"
    )
    typer.echo(f"  {'date':<12}{'normalized':>12}{'prediction':>14}{'actual':>12}")
    for p in result.evaluation:
        actual = "" if p.actual is None else f"{p.actual:.0f}"
        typer.echo(
            f"  {p.obs_date.isoformat():<12}{p.normalized_prediction:>12.4f}"
            f"{p.prediction:>14.1f}{actual:>12}"
        )

    metrics = result.metrics
    if metrics:
        line = f"  MAE={metrics['mae']:.2f}  RMSE={metrics['rmse']:.2f}"
        if "mape" in metrics:
            line += f"  MAPE={metrics['mape']:.2%}"
        typer.echo(line)

    for p in result.forecast:
        typer.echo(f"  Forecast {p.obs_date.isoformat()}: {p.prediction:.1f}")

    if not no_export:
        paths = write_forecast_exports(result, Path(config.data.output_dir), run.run_slug)
        for kind, path in paths.items():
            typer.echo(f"  {kind:<5} {path}")
    typer.echo("[OK] Forecast complete.")


if __name__ == "__main__":
    app()
