"""
Logging levels and formats from logging-config.yaml.

Lookup order for a component setting:
    1. LOG_LEVEL_<COMPONENT> / LOG_JSON_FORMAT_<COMPONENT>
    2. LOG_LEVEL / LOG_JSON_FORMAT (default component only)
    3. components.<component> in the YAML file
    4. default_level / plain text

The file is found through LOGGING_CONFIG or by walking up from the package.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = "logging-config.yaml"

_TRUE_VALUES = ("true", "1", "yes")


def _find_config() -> Optional[Path]:
    if env_path := os.getenv("LOGGING_CONFIG"):
        return Path(env_path)
    current = Path(__file__).resolve().parent
    for directory in (current, *current.parents[:4]):
        candidate = directory / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def _env_suffix(component: str) -> str:
    return component.upper().replace("-", "_")


class LoggingConfig:
    """Component and module log settings."""

    _instance: Optional["LoggingConfig"] = None

    def __init__(self, config_path: Optional[str] = None):
        path = Path(config_path) if config_path else _find_config()
        self._config: Dict[str, Any] = {}
        if path is not None and path.exists():
            with open(path, encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}

    @classmethod
    def get_instance(cls) -> "LoggingConfig":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def _override(self, prefix: str, component: str) -> Optional[str]:
        value = os.getenv(f"{prefix}_{_env_suffix(component)}")
        if not value and component == "default":
            value = os.getenv(prefix)
        return value or None

    def _component(self, component: str) -> Any:
        return (self._config.get("components") or {}).get(component)

    def get_level(self, component: str = "default") -> str:
        """Level name (DEBUG, INFO, ...) of a component such as web or cli."""
        if env_level := self._override("LOG_LEVEL", component):
            return env_level.upper()

        setting = self._component(component)
        if isinstance(setting, str):
            return setting.upper()
        if isinstance(setting, dict) and "level" in setting:
            return str(setting["level"]).upper()

        return str(self._config.get("default_level", "INFO")).upper()

    def get_json_format(self, component: str = "default") -> bool:
        """Whether the component logs JSON to the console."""
        if env_json := self._override("LOG_JSON_FORMAT", component):
            return env_json.lower() in _TRUE_VALUES

        setting = self._component(component)
        if isinstance(setting, dict):
            return bool(setting.get("json_format", False))
        return False

    def module_levels(self) -> Dict[str, str]:
        """Per-module level overrides."""
        return {name: str(level).upper() for name, level in (self._config.get("modules") or {}).items()}

    def get_module_level(self, module_name: str) -> Optional[str]:
        return self.module_levels().get(module_name)


def get_logging_config() -> LoggingConfig:
    """Process-wide logging configuration."""
    return LoggingConfig.get_instance()
