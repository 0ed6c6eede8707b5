"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest
import yaml

from warehouse.config import load_config
from warehouse.exceptions import ConfigurationError


def test_defaults_without_config_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = load_config(tmpdir)
        assert config.base_dir == Path(tmpdir)
        assert config.domain == "localhost"
        assert config.backend_ttl == 300.0
        assert config.auth_dir == Path(tmpdir) / "auth"


def test_load_from_yaml():
    with tempfile.TemporaryDirectory() as tmpdir:
        with open(Path(tmpdir) / "config.yaml", "w") as f:
            yaml.dump({"domain": "example.com", "backend_ttl": 30, "log_level": "info", "extra": 1}, f)
        config = load_config(tmpdir)
        assert config.domain == "example.com"
        assert config.backend_ttl == 30.0
        assert config.log_level == "INFO"


def test_invalid_values_raise():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("backend_ttl: soon\n")
        with pytest.raises(ConfigurationError):
            load_config(tmpdir)

        path.write_text("- not\n- a mapping\n")
        with pytest.raises(ConfigurationError):
            load_config(tmpdir)

        path.write_text("log_level: LOUD\n")
        with pytest.raises(ConfigurationError):
            load_config(tmpdir)

        path.write_text("log_level: debug\n")
        assert load_config(tmpdir).log_level == "DEBUG"


def test_home_from_environment(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("WAREHOUSE_HOME", tmpdir)
        assert load_config().base_dir == Path(tmpdir)
