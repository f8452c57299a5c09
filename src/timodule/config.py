"""Configuration loading and lookup."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from timodule.errors import ConfigError, ConfigNotFoundError

__all__ = ["Config", "DEFAULT_IGNORE_DIRS"]

DEFAULT_IGNORE_DIRS = r"^(\.svn|\.git|\.hg|\.?[Cc][Vv][Ss]|\.bzr)$"


class Config:
    """Configuration accessor with dot-path key support.

    Keys read by the module detector:

    * ``cli.ignoreDirs``: regex of directory names pruned while scanning.
    * ``paths.modules``: extra global module roots (string or list).
    * ``detect.parallel``: scan independent roots on worker threads.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file.

        Raises:
            ConfigNotFoundError: If the file does not exist.
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigNotFoundError(config_path=str(path))

        content = path.read_text(encoding="utf-8")
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(message=f"Invalid YAML in config file: {path}", cause=e) from e

        if parsed is None:
            return cls()
        if not isinstance(parsed, dict):
            raise ConfigError(message=f"Config file must be a YAML mapping: {path}")
        return cls(parsed)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-path key.

        A literal key containing dots (``{"cli.ignoreDirs": ...}``) takes
        precedence over the nested lookup.
        """
        if key in self._data:
            return self._data[key]
        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def ignore_dirs_pattern(self) -> re.Pattern[str]:
        """Compile the ``cli.ignoreDirs`` pattern, falling back to the default.

        Raises:
            ConfigError: If the configured pattern is not a valid regex.
        """
        raw = self.get("cli.ignoreDirs") or DEFAULT_IGNORE_DIRS
        try:
            return re.compile(raw)
        except re.error as e:
            raise ConfigError(message=f"Invalid cli.ignoreDirs pattern: {raw!r}", cause=e) from e

    def module_paths(self) -> list[str]:
        """Return the extra global module roots from ``paths.modules``."""
        value = self.get("paths.modules")
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value if v]
