"""
Config system - layered configuration with merge precedence.

Merge order (later overrides earlier):
1. Built-in defaults
2. Config files (sysdef.yaml / sysdef.yml / sysdef.json)
3. .env file (SYSDEF_* keys only)
4. Environment variables (SYSDEF_* prefix)
5. Manual overrides
"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import copy
import json
import logging
import os

import yaml
from dotenv import dotenv_values

from .errors import ConfigError
from .toolchain import build_root

DEFAULT_CONFIG_FILES = ("sysdef.yaml", "sysdef.yml", "sysdef.json")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = ("true", "yes")
_FALSE = ("false", "no")


def default_cache_dir() -> Path:
    """Per-user cache location, honouring ``XDG_CACHE_HOME``."""
    xdg = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / "sysdef"


def _defaults() -> Dict[str, Any]:
    return {
        "cache_dir": str(default_cache_dir()),
        "roots": ["."],
        "log_level": "WARNING",
    }


class SysdefConfig:
    """Resolved configuration values."""

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    @property
    def cache_dir(self) -> Path:
        return Path(str(self._data["cache_dir"])).expanduser()

    @property
    def build_root(self) -> Path:
        """Cache directory plus the toolchain signature."""
        return build_root(self.cache_dir)

    @property
    def roots(self) -> List[Path]:
        return [Path(str(root)).expanduser() for root in self._data["roots"]]

    @property
    def log_level(self) -> str:
        return self._data["log_level"]

    def get(self, path: str, default: Any = None) -> Any:
        """Value at a dotted path such as ``"extra.depth"``, or *default*."""
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"SysdefConfig(cache_dir={str(self.cache_dir)!r}, roots={len(self.roots)})"


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "SYSDEF_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = _defaults()

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "SYSDEF_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> SysdefConfig:
        """
        Load configuration from every source.

        Args:
            paths: Config files to read; defaults to the first of
                DEFAULT_CONFIG_FILES found in the working directory
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Validated SysdefConfig

        Raises:
            ConfigError: If a file cannot be parsed or a value is invalid
        """
        loader = cls(env_prefix=env_prefix)

        if paths is None:
            paths = [name for name in DEFAULT_CONFIG_FILES if Path(name).exists()][:1]

        for path in paths:
            loader._load_file(Path(path))

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(
                loader.config_data,
                {key: value for key, value in overrides.items() if value is not None},
            )

        return loader.build()

    def build(self) -> SysdefConfig:
        """Validate merged data and wrap it."""
        data = self.config_data

        roots = data.get("roots")
        if isinstance(roots, str):
            roots = [part for part in roots.split(os.pathsep) if part]
        if not isinstance(roots, list) or not roots:
            raise ConfigError("'roots' must be a non-empty list of directories")
        data["roots"] = roots

        level = str(data.get("log_level", "WARNING")).upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level '{data.get('log_level')}'",
                suggestion=f"Use one of: {', '.join(_LOG_LEVELS)}",
            )
        data["log_level"] = level

        if not data.get("cache_dir"):
            raise ConfigError("'cache_dir' must not be empty")

        return SysdefConfig(data)

    def _load_file(self, path: Path):
        """Load config from a JSON or YAML file."""
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path) as f:
                if path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e
        if data:
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")
            self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Apply ``SYSDEF_*`` entries of a dotenv file; a missing file is fine."""
        if not Path(path).exists():
            return
        for key, value in dotenv_values(path).items():
            if value is not None:
                self._apply_env(key, value)

    def _load_from_env(self):
        for key, value in os.environ.items():
            self._apply_env(key, value)

    def _apply_env(self, key: str, value: str):
        if key.startswith(self.env_prefix):
            self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """``SYSDEF_CACHE_DIR`` -> ``cache_dir``; ``SYSDEF_A__B`` -> ``a.b``."""
        *parents, leaf = key[len(self.env_prefix):].lower().split("__")

        node = self.config_data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Booleans, numbers and JSON lists/objects; anything else stays a string."""
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False

        number = int if "." not in value else float
        try:
            return number(value)
        except ValueError:
            pass

        if value[:1] in ("{", "["):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value

    def _merge_dict(self, target: dict, source: dict):
        """Merge *source* into *target*, recursing where both sides are mappings."""
        for key, value in source.items():
            current = target.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                self._merge_dict(current, value)
            else:
                target[key] = value


def configure_logging(level: str) -> None:
    """Install a root handler at *level*; only the CLI calls this."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
