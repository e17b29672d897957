"""Tests for configuration models and the TOML / env loader."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from pageview_forecaster.config import (
    AppConfig,
    FeatureConfig,
    LoggingConfig,
    ModelConfig,
    SplitConfig,
    load_config,
)

_TOML = """
[project]
debug = true

[data]
series_file = "custom.csv"

[features]
lags = 3
calendar_attributes = ["weekday"]

[split]
cutoff_date = 2016-12-01

[model]
hidden_layer_sizes = [12, 6]
"""


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("SERIES_FILE", "LOG_LEVEL", "SEED", "DEBUG"):
        monkeypatch.delenv(f"PAGEVIEW_FORECASTER_{name}", raising=False)
    return monkeypatch


class TestModels:
    def test_defaults(self):
        cfg = AppConfig()
        assert cfg.features.lags == 7
        assert cfg.model.hidden_layer_sizes == [10, 5]
        assert cfg.forecast.horizon_days == 1
        assert cfg.split.cutoff_date is None

    def test_lags_must_be_positive(self):
        with pytest.raises(ValidationError):
            FeatureConfig(lags=0)

    def test_unknown_calendar_attribute(self):
        with pytest.raises(ValidationError, match="hour"):
            FeatureConfig(calendar_attributes=["weekday", "hour"])

    def test_duplicate_calendar_attribute(self):
        with pytest.raises(ValidationError):
            FeatureConfig(calendar_attributes=["month", "month"])

    @pytest.mark.parametrize("sizes", [[10], [10, 5, 2], [10, 0]])
    def test_two_positive_hidden_layers(self, sizes):
        with pytest.raises(ValidationError):
            ModelConfig(hidden_layer_sizes=sizes)

    def test_invalid_activation(self):
        with pytest.raises(ValidationError):
            ModelConfig(activation="softmax")

    def test_eval_days_positive(self):
        with pytest.raises(ValidationError):
            SplitConfig(eval_days=0)

    def test_log_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_frozen(self):
        with pytest.raises(ValidationError):
            AppConfig().debug = True


class TestLoadConfig:
    def test_bundled_default_loads(self, clean_env):
        cfg = load_config()
        assert cfg.data.series_file == "data/sample/pageviews.csv"
        assert cfg.features.calendar_attributes == ["weekday", "month", "monthday", "week"]

    def test_custom_toml(self, tmp_path, clean_env):
        path = tmp_path / "custom.toml"
        path.write_text(_TOML, encoding="utf-8")
        cfg = load_config(path)
        assert cfg.debug is True
        assert cfg.data.series_file == "custom.csv"
        assert cfg.features.lags == 3
        assert cfg.split.cutoff_date == date(2016, 12, 1)
        assert cfg.model.hidden_layer_sizes == [12, 6]
        assert cfg.model.seed == 42

    def test_local_toml_merged(self, tmp_path, clean_env):
        path = tmp_path / "custom.toml"
        path.write_text(_TOML, encoding="utf-8")
        (tmp_path / "local.toml").write_text("[features]\nlags = 14\n", encoding="utf-8")
        cfg = load_config(path)
        assert cfg.features.lags == 14
        assert cfg.features.calendar_attributes == ["weekday"]

    def test_env_overrides(self, tmp_path, clean_env):
        path = tmp_path / "custom.toml"
        path.write_text(_TOML, encoding="utf-8")
        clean_env.setenv("PAGEVIEW_FORECASTER_SEED", "7")
        clean_env.setenv("PAGEVIEW_FORECASTER_LOG_LEVEL", "warning")
        clean_env.setenv("PAGEVIEW_FORECASTER_SERIES_FILE", "env.csv")
        cfg = load_config(path)
        assert cfg.model.seed == 7
        assert cfg.logging.level == "WARNING"
        assert cfg.data.series_file == "env.csv"

    def test_missing_file(self, tmp_path, clean_env):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.toml")

    def test_invalid_value_rejected(self, tmp_path, clean_env):
        path = tmp_path / "bad.toml"
        path.write_text("[features]\nlags = -1\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)
