"""Configuration for a Warehouse installation.

Settings are read from ``<base_dir>/config.yaml`` when the file exists::

    domain: warehouse.example.com
    backend_ttl: 300
    log_level: INFO
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from warehouse.exceptions import ConfigurationError

CONFIG_FILE = "config.yaml"


def _default_base_dir() -> Path:
    env = os.environ.get("WAREHOUSE_HOME")
    return Path(env) if env else Path.home() / ".warehouse"


@dataclass
class WarehouseConfig:
    """Runtime configuration.

    Attributes
    ----------
    base_dir:
        Directory holding the JSON stores and ``config.yaml``. Defaults to
        ``$WAREHOUSE_HOME`` or ``~/.warehouse``.
    domain:
        Site domain; repositories are served from ``<subdomain>.<domain>``.
    backend_ttl:
        Seconds an opened backend handle is reused before it is reopened.
    log_level:
        Level name passed to ``configure_logging`` by the CLI.
    """

    base_dir: Path = field(default_factory=_default_base_dir)
    domain: str = "localhost"
    backend_ttl: float = 300.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir)

    @property
    def auth_dir(self) -> Path:
        return self.base_dir / "auth"

    @property
    def repos_dir(self) -> Path:
        return self.base_dir / "repos"


def load_config(base_dir: Optional[str | Path] = None) -> WarehouseConfig:
    """Load configuration for ``base_dir`` (or the default directory).

    Missing files yield the defaults. Unknown keys are ignored.

    Raises:
        ConfigurationError: If the file cannot be parsed or holds invalid values.
    """
    config = WarehouseConfig() if base_dir is None else WarehouseConfig(base_dir=Path(base_dir))
    path = config.base_dir / CONFIG_FILE
    if not path.exists():
        return config

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")

    if "domain" in data:
        config.domain = str(data["domain"])
    if "log_level" in data:
        level = str(data["log_level"]).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"Unknown log_level {data['log_level']!r}")
        config.log_level = level
    if "backend_ttl" in data:
        try:
            config.backend_ttl = float(data["backend_ttl"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"backend_ttl must be a number, got {data['backend_ttl']!r}") from e
        if config.backend_ttl < 0:
            raise ConfigurationError("backend_ttl must not be negative")

    return config
