"""Configuration loading helpers for pagewatch."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import WatchConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
DEFAULT_CONFIG_FILENAME = "config.json"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


@dataclass(slots=True)
class ConfigLocator:
    """Resolve the configuration file and working directories."""

    project_root: Path | None = None
    config_path: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("PAGEWATCH_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        if self.config_path is None:
            env_config = os.environ.get("PAGEWATCH_CONFIG")
            self.config_path = Path(env_config) if env_config else root / DEFAULT_CONFIG_FILENAME
        self.config_path = self.config_path.expanduser().resolve()
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def config_dir(self) -> Path:
        return self.config_path.parent


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: WatchConfig | None = None

    def load(self) -> WatchConfig:
        """Read and validate the watch configuration.

        Raises ``FileNotFoundError`` when the file is missing, ``ValueError`` for
        unreadable content and ``pydantic.ValidationError`` for schema errors.
        """
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path
        if not path.exists():
            raise FileNotFoundError(f"Configuration not found: {path}")
        if path.suffix not in CONFIG_EXTENSIONS:
            raise ValueError(f"Unsupported configuration format: {path.suffix}")
        try:
            payload = _read_file(path)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ValueError(f"Cannot parse configuration {path}: {exc}") from exc
        config = WatchConfig.model_validate(payload)
        self._cache = config
        return config

    def state_path(self, config: WatchConfig | None = None) -> Path:
        config = config or self.load()
        return config.resolved_state_path(self.locator.config_dir)


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "DEFAULT_CONFIG_FILENAME"]
