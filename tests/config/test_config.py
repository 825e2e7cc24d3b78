"""
Tests for configuration loading.

Resolution order: explicit path, then $LIVESTOCK_CONFIG, then the packaged
defaults; $DATABASE_URL replaces database.url.
"""

from pathlib import Path

import pytest
import yaml

from livestock_config import (
    DEFAULTS_PATH,
    LivestockConfig,
    get_active_config,
    parse_config,
)
from livestock_modules.reporting import ReportingConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("LIVESTOCK_CONFIG", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)


def write_config(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "livestock.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestGetActiveConfig:
    def test_packaged_defaults(self):
        config = get_active_config()

        assert isinstance(config, LivestockConfig)
        assert config.source == str(DEFAULTS_PATH)
        assert config.database.url == "sqlite:///livestock.db"
        assert config.logging.level == "INFO"
        assert config.sales.lock_timeout_seconds == 10.0
        assert config.reporting == {
            "display_precision": 2,
            "upcoming_treatment_limit": 10,
            "trend_months": 12,
        }

    def test_explicit_path(self, tmp_path):
        path = write_config(
            tmp_path,
            {"database": {"url": "sqlite:///farm.db", "echo": True}, "sales": {"lock_timeout_seconds": 2.5}},
        )

        config = get_active_config(path)

        assert config.database.url == "sqlite:///farm.db"
        assert config.database.echo is True
        assert config.database.pool_size == 10
        assert config.sales.lock_timeout_seconds == 2.5
        assert config.logging.level == "INFO"

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, {"logging": {"level": "DEBUG"}})
        monkeypatch.setenv("LIVESTOCK_CONFIG", str(path))

        config = get_active_config()

        assert config.logging.level == "DEBUG"
        assert config.source == str(path)

    def test_explicit_path_beats_env(self, tmp_path, monkeypatch):
        explicit = write_config(tmp_path, {"logging": {"level": "ERROR"}})
        monkeypatch.setenv("LIVESTOCK_CONFIG", str(tmp_path / "missing.yaml"))

        assert get_active_config(explicit).logging.level == "ERROR"

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://farm@localhost/livestock")

        config = get_active_config()

        assert config.database.url == "postgresql://farm@localhost/livestock"
        assert config.database.pool_size == 10

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        config = get_active_config(path)

        assert config.database.url == "sqlite:///livestock.db"
        assert config.reporting == {}

    def test_config_loaded_logged(self, captured_logs):
        get_active_config()

        loaded = [r for r in captured_logs() if r["message"] == "config_loaded"]
        assert loaded[0]["database_url_from_env"] is False


class TestParseConfig:
    def test_unknown_section(self):
        with pytest.raises(ValueError, match="sections"):
            parse_config({"metrics": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="database"):
            parse_config({"database": {"uri": "sqlite://"}})

    @pytest.mark.parametrize(
        "data",
        [
            {"database": {"echo": "yes"}},
            {"database": {"pool_size": "10"}},
            {"database": {"pool_size": True}},
            {"sales": {"lock_timeout_seconds": "fast"}},
            {"logging": {"level": 10}},
        ],
    )
    def test_wrong_type(self, data):
        with pytest.raises(ValueError):
            parse_config(data)

    @pytest.mark.parametrize(
        "data",
        [
            {"database": {"url": ""}},
            {"database": {"pool_size": 0}},
            {"database": {"max_overflow": -1}},
            {"logging": {"level": "VERBOSE"}},
            {"sales": {"lock_timeout_seconds": 0}},
        ],
    )
    def test_invalid_value(self, data):
        with pytest.raises(ValueError):
            parse_config(data)

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError):
            parse_config({"sales": [1, 2]})

    def test_int_timeout_becomes_float(self):
        config = parse_config({"sales": {"lock_timeout_seconds": 3}})
        assert config.sales.lock_timeout_seconds == 3.0
        assert isinstance(config.sales.lock_timeout_seconds, float)

    def test_config_is_frozen(self):
        config = parse_config({})
        with pytest.raises(AttributeError):
            config.database.url = "sqlite://"


class TestReportingConfig:
    def test_defaults(self):
        config = ReportingConfig.with_defaults()
        assert config.display_precision == 2
        assert config.upcoming_treatment_limit == 10
        assert config.trend_months == 12
        assert config.default_currency == "INR"

    def test_from_config_section(self):
        config = ReportingConfig.from_dict(get_active_config().reporting)
        assert config.upcoming_treatment_limit == 10

    def test_unknown_key(self):
        with pytest.raises(TypeError):
            ReportingConfig.from_dict({"page_size": 5})

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"display_precision": -1},
            {"upcoming_treatment_limit": -3},
            {"trend_months": 0},
            {"default_currency": "RUPEE"},
        ],
    )
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            ReportingConfig(**kwargs)
