"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration management with environment variable override support.

Features:
    - YAML configuration loading
    - Environment variable override (SMART_LOCATOR_CACHE_PATH overrides
      smart_locator.cache_path)
    - Legacy flat variable names (USE_SMART_LOCATOR, OPENAI_API_KEY, ...)
    - Dot notation path access with default values
    - Typed settings view for the self-healing locator subsystem

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from .errors import ConfigurationError


PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Default configuration file path
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"

# Flat environment names accepted in addition to the dotted-key mapping
ENV_ALIASES: Dict[str, str] = {
    "smart_locator.use_smart_locator": "USE_SMART_LOCATOR",
    "smart_locator.run_with_smart_locator": "RUN_WITH_SMART_LOCATOR",
    "smart_locator.cache_path": "CACHE_PATH",
    "openai.api_key": "OPENAI_API_KEY",
    "openai.model": "OPENAI_MODEL",
    "openai.base_url": "OPENAI_BASE_URL",
    "logging.level": "LOG_LEVEL",
    "logging.file": "LOG_FILE_PATH",
}


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Environment variables (SMART_LOCATOR_USE_SMART_LOCATOR, then the
           flat alias USE_SMART_LOCATOR)
        2. YAML configuration file
        3. Default values

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("smart_locator.use_smart_locator", False)
        True

        >>> config.get("smart_locator.probe_timeout_ms", 200)
        200  # Default value if not configured
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Singleton pattern - configuration is loaded once per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
            logger.debug(f"Loaded configuration from: {self._config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        First checks environment variables, then YAML config, then default.

        Args:
            key: Dot-notation path (e.g., "smart_locator.cache_path")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        env_value = self._get_env(key)
        if env_value is not None:
            return self._convert_type(env_value, default)

        value = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def _get_env(self, key: str) -> Optional[str]:
        env_value = os.environ.get(key.upper().replace(".", "_"))
        if env_value is None and key in ENV_ALIASES:
            env_value = os.environ.get(ENV_ALIASES[key])
        return env_value

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value

        return value

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        cls._instance = None
        cls._config = {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class SmartLocatorSettings:
    """
    Typed view of the options the self-healing subsystem consumes.

    Attributes:
        use_smart_locator: Whether healing is attempted at all
        run_with_smart_locator: Whether a validated healed locator is
            substituted (False turns every healing into a review failure)
        cache_path: Location of the persisted locator cache
        probe_timeout_ms: Short existence probe used before and after healing
        wait_timeout_ms: Regular wait used by the interaction layer
        cache_max_age_days: Entries older than this are dropped at start-up
        max_html_snippets: Optional cap on HTML snippets sent to inference
    """

    use_smart_locator: bool = False
    run_with_smart_locator: bool = False
    cache_path: Path = PROJECT_ROOT / "locator_cache.json"
    probe_timeout_ms: int = 200
    wait_timeout_ms: int = 5000
    cache_max_age_days: float = 3
    max_html_snippets: Optional[int] = None

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "SmartLocatorSettings":
        if config is None:
            config = ConfigLoader()

        cache_path = Path(config.get("smart_locator.cache_path", "locator_cache.json"))
        if not cache_path.is_absolute():
            cache_path = PROJECT_ROOT / cache_path

        max_snippets = config.get("smart_locator.max_html_snippets")
        return cls(
            use_smart_locator=_as_bool(config.get("smart_locator.use_smart_locator", False)),
            run_with_smart_locator=_as_bool(
                config.get("smart_locator.run_with_smart_locator", False)
            ),
            cache_path=cache_path,
            probe_timeout_ms=int(config.get("smart_locator.probe_timeout_ms", 200)),
            wait_timeout_ms=int(config.get("smart_locator.wait_timeout_ms", 5000)),
            cache_max_age_days=float(config.get("smart_locator.cache_max_age_days", 3.0)),
            max_html_snippets=int(max_snippets) if max_snippets is not None else None,
        )


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "SmartLocatorSettings",
    "DEFAULT_CONFIG_PATH",
    "PROJECT_ROOT",
]
