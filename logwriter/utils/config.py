"""
Configuration management for logwriter.

Values come from, in increasing priority:
- The packaged default.yaml
- A user YAML file (argument, or the LOGWRITER_CONFIG variable)
- LOGWRITER_* environment variables

The "writer" section maps onto logwriter.open.OpenOption; the "logging"
section configures the pipeline's own diagnostics.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from logwriter.core.errors import ConfigError

CONFIG_FILE_ENV = "LOGWRITER_CONFIG"

# Variable -> (key, converter, whether an empty value counts).
# An empty file_or_dir selects the discard sink and an empty suffix turns
# compression off, so those two keep empty strings.
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any], bool]] = {
    "LOGWRITER_FILE_OR_DIR": ("writer.file_or_dir", str, True),
    "LOGWRITER_PREFIX": ("writer.prefix", str, False),
    "LOGWRITER_SUFFIX": ("writer.suffix", str, True),
    "LOGWRITER_BUFFER_SIZE": ("writer.buffer_size", int, False),
    "LOGWRITER_FLUSH_INTERVAL": ("writer.flush_interval", float, False),
    "LOGWRITER_ROOT_LEVEL": ("writer.root_level", str, False),
    "LOGWRITER_LOG_LEVEL": ("logging.level", str, False),
    "LOGWRITER_LOG_FORMAT": ("logging.format", str, False),
    "LOGWRITER_LOG_OUTPUT": ("logging.output", str, False),
}

LOG_FORMATS = ("console", "json")
LOG_OUTPUTS = ("stderr", "stdout")


def _is_level_name(value: Any) -> bool:
    return isinstance(logging.getLevelName(str(value).upper()), int)


class Config:
    """Configuration manager for logwriter."""

    DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: YAML file merged over the defaults

        Raises:
            ConfigError: If an environment override cannot be converted
        """
        self._config: Dict[str, Any] = {}
        self._load_config_file(str(self.DEFAULT_CONFIG_PATH))

        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _load_config_file(self, config_file: str) -> None:
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f)
        if file_config:
            self._config = self._deep_merge(self._config, file_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        for name, (key, convert, keep_empty) in ENV_OVERRIDES.items():
            raw = os.getenv(name)
            if raw is None or (raw == "" and not keep_empty):
                continue
            try:
                self.set(key, convert(raw))
            except ValueError as e:
                raise ConfigError(f"invalid {name}={raw!r}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "writer.suffix")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            config = config.setdefault(k, {})
        config[keys[-1]] = value

    def validate(self) -> None:
        """
        Check the values setup_from_config() consumes.

        Raises:
            ConfigError: On an unknown level, format or output, or a
                non-numeric buffer size or flush interval
        """
        for key in ("logging.level", "writer.root_level"):
            value = self.get(key)
            if value is not None and not _is_level_name(value):
                raise ConfigError(f"{key}: unknown level {value!r}")

        log_format = self.get("logging.format", "console")
        if log_format not in LOG_FORMATS:
            raise ConfigError(f"logging.format: expected one of {LOG_FORMATS}, got {log_format!r}")

        log_output = self.get("logging.output", "stderr")
        if log_output not in LOG_OUTPUTS:
            raise ConfigError(f"logging.output: expected one of {LOG_OUTPUTS}, got {log_output!r}")

        for key, convert in (("writer.buffer_size", int), ("writer.flush_interval", float)):
            value = self.get(key)
            if value is None:
                continue
            try:
                convert(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{key}: {e}") from e


_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Configuration file path; defaults to $LOGWRITER_CONFIG

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file or os.getenv(CONFIG_FILE_ENV))
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
