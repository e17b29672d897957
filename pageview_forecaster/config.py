"""
Configuration for the pageview forecaster.

Sources, lowest precedence first:

  ``config/default.toml``   shipped defaults
  ``config/local.toml``     machine-specific overrides, next to the main file
  ``.env``                  loaded into the process environment
  ``PAGEVIEW_FORECASTER_*`` environment variables (see ``_ENV_OVERRIDES``)

``load_config()`` returns one frozen ``AppConfig``.  Stages and commands take
that object as their only source of settings.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from datetime import date
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ISO weekday, month, day of month, ISO week; see features/calendar.py.
CALENDAR_ATTRIBUTES: tuple[str, ...] = ("weekday", "month", "monthday", "week")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_ACTIVATIONS = ("identity", "logistic", "tanh", "relu")
_SOLVERS = ("lbfgs", "sgd", "adam")


# ── Sections ──────────────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Where the series is read from and where outputs go."""

    model_config = ConfigDict(frozen=True)

    series_file: str = "data/sample/pageviews.csv"
    date_column: str = "date"
    value_column: str = "views"
    output_dir: str = "data/output"


class FeatureConfig(BaseModel):
    """Lag and calendar feature parameters.

    ``lags`` is the number of lagged predictors ``p`` per row.  Calendar
    attributes are one-hot encoded with a vocabulary frozen on training rows.
    """

    model_config = ConfigDict(frozen=True)

    lags: int = 7
    include_calendar: bool = True
    calendar_attributes: list[str] = list(CALENDAR_ATTRIBUTES)

    @field_validator("lags")
    @classmethod
    def validate_lags(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"features.lags must be at least 1, got {v}.")
        return v

    @field_validator("calendar_attributes")
    @classmethod
    def validate_attributes(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name not in CALENDAR_ATTRIBUTES]
        if unknown:
            raise ValueError(
                f"Unknown calendar attributes {unknown}; "
                f"choose from {list(CALENDAR_ATTRIBUTES)}."
            )
        if len(set(v)) != len(v):
            raise ValueError(f"calendar_attributes lists an attribute twice: {v}.")
        return v


class SplitConfig(BaseModel):
    """Train / evaluation split.

    If ``cutoff_date`` is unset, the last ``eval_days`` dates of the series
    form the evaluation period.
    """

    model_config = ConfigDict(frozen=True)

    cutoff_date: Optional[date] = None
    eval_days: int = 28

    @field_validator("eval_days")
    @classmethod
    def validate_eval_days(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"split.eval_days must be at least 1, got {v}.")
        return v


class ModelConfig(BaseModel):
    """Feed-forward network hyperparameters."""

    model_config = ConfigDict(frozen=True)

    hidden_layer_sizes: list[int] = [10, 5]
    seed: int = 42
    max_iter: int = 2000
    learning_rate_init: float = 0.001
    alpha: float = 0.0001
    activation: str = "relu"
    solver: str = "adam"
    early_stopping: bool = False

    @field_validator("hidden_layer_sizes")
    @classmethod
    def validate_hidden_layers(cls, v: list[int]) -> list[int]:
        if len(v) != 2 or min(v) < 1:
            raise ValueError(
                f"hidden_layer_sizes must be two positive layer widths, got {v}."
            )
        return v

    @field_validator("activation")
    @classmethod
    def validate_activation(cls, v: str) -> str:
        if v not in _ACTIVATIONS:
            raise ValueError(f"model.activation must be one of {list(_ACTIVATIONS)}, got '{v}'.")
        return v

    @field_validator("solver")
    @classmethod
    def validate_solver(cls, v: str) -> str:
        if v not in _SOLVERS:
            raise ValueError(f"model.solver must be one of {list(_SOLVERS)}, got '{v}'.")
        return v


class ForecastConfig(BaseModel):
    """How far past the last observation to forecast."""

    model_config = ConfigDict(frozen=True)

    horizon_days: int = 1

    @field_validator("horizon_days")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"forecast.horizon_days must be at least 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Log level, optional log file, and output format."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/forecaster.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {list(_LOG_LEVELS)}, got '{v}'.")
        return level


class AppConfig(BaseModel):
    """All settings for one run, one section per concern."""

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    features: FeatureConfig = FeatureConfig()
    split: SplitConfig = SplitConfig()
    model: ModelConfig = ModelConfig()
    forecast: ForecastConfig = ForecastConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loading ───────────────────────────────────────────────────────────────────

_ENV_PREFIX = "PAGEVIEW_FORECASTER_"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Env suffix -> (TOML section or None for top level, key, converter).
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str, Callable[[str], Any]]] = {
    "SERIES_FILE":  ("data", "series_file", str),
    "OUTPUT_DIR":   ("data", "output_dir", str),
    "LOG_LEVEL":    ("logging", "level", str),
    "SEED":         ("model", "seed", int),
    "HORIZON_DAYS": ("forecast", "horizon_days", int),
    "DEBUG":        (None, "debug", _parse_bool),
}


def project_root() -> Path:
    """Nearest ancestor of this package that holds ``pyproject.toml``."""
    here = Path(__file__).resolve().parent
    for candidate in (here, *here.parents):
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return here.parent


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Read, merge and validate the configuration.

    Args:
        config_path: TOML file to read; ``config/default.toml`` under the
            project root when omitted.  A ``local.toml`` in the same
            directory is merged on top if present.

    Raises:
        FileNotFoundError: ``config_path`` does not exist.
        pydantic.ValidationError: A merged value fails validation.
    """
    root = project_root()
    load_dotenv(root / ".env", override=False)

    path = Path(config_path) if config_path is not None else root / "config" / "default.toml"
    if not path.is_file():
        raise FileNotFoundError(
            f"Config file not found: {path}. Pass --config or restore config/default.toml."
        )

    raw = _read_toml(path)
    local = path.with_name("local.toml")
    if local.is_file():
        raw = _merge(raw, _read_toml(local))

    return _build_app_config(_apply_env_overrides(raw, os.environ))


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Nested dict merge; ``override`` wins on conflicting leaves."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for suffix, (section, key, convert) in _ENV_OVERRIDES.items():
        value = environ.get(_ENV_PREFIX + suffix)
        if not value:
            continue
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = convert(value)
    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    # [project] only carries the debug flag; a top-level debug key wins.
    project = raw.pop("project", {})
    raw.setdefault("debug", project.get("debug", False))
    return AppConfig.model_validate(raw)
