"""Configuration management for SheetFusion.

This module provides centralized configuration loading with support for
YAML files, environment variable overrides, and validation. Configuration
covers ambient behavior (logging, defaults, temporary files); the merge
itself is driven by ``MergeOptions``.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from sheet_fusion.models.data_models import Config, ConversionConfig, LoggingConfig


logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class ConfigManager:
    """Manages application configuration loading and validation.

    Configuration Loading Order:
    1. Built-in defaults
    2. config_path if provided, otherwise config/default.yaml if it exists
    3. SHEET_FUSION_* environment variables

    Example:
        >>> manager = ConfigManager()
        >>> config = manager.load_config()
        >>> print(config.output_sheet_name)
        MergedData
    """

    ENV_PREFIX = "SHEET_FUSION_"

    DEFAULT_CONFIG_PATH = Path("config/default.yaml")

    DEFAULT_CONFIG: Dict[str, Any] = {
        "merge": {
            "output_file": "merged.xlsx",
            "output_sheet_name": "MergedData",
        },
        "conversion": {
            "temp_dir": None,
            "suffix": "_converted",
        },
        "logging": {
            "level": "WARNING",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": {
                "enabled": False,
                "path": "./logs/sheet_fusion.log",
            },
            "console": {
                "enabled": True,
            },
            "structured": {
                "enabled": False,
            },
        },
    }

    ENV_MAPPINGS: Dict[str, List[str]] = {
        "OUTPUT_FILE": ["merge", "output_file"],
        "OUTPUT_SHEET_NAME": ["merge", "output_sheet_name"],
        "TEMP_DIR": ["conversion", "temp_dir"],
        "CONVERTED_SUFFIX": ["conversion", "suffix"],
        "LOG_LEVEL": ["logging", "level"],
        "LOG_FILE_ENABLED": ["logging", "file", "enabled"],
        "LOG_FILE_PATH": ["logging", "file", "path"],
        "LOG_CONSOLE_ENABLED": ["logging", "console", "enabled"],
    }

    # Settings that stay strings even when they look like numbers
    STRING_SETTINGS = {"OUTPUT_FILE", "OUTPUT_SHEET_NAME", "TEMP_DIR", "CONVERTED_SUFFIX", "LOG_FILE_PATH"}

    def __init__(self) -> None:
        self._config_cache: Dict[str, Config] = {}

    def load_config(
        self,
        config_path: Optional[Union[str, Path]] = None,
        use_env_overrides: bool = True
    ) -> Config:
        """Load configuration from file with optional environment overrides.

        Args:
            config_path: Path to configuration file. If None, config/default.yaml
                is used when present, else built-in defaults
            use_env_overrides: Whether to apply environment variable overrides

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        cache_key = f"{config_path}:{use_env_overrides}"
        if cache_key in self._config_cache:
            logger.debug(f"Using cached configuration for {cache_key}")
            return self._config_cache[cache_key]

        try:
            config_dict = self._load_config_dict(config_path)

            if use_env_overrides:
                config_dict = self._apply_env_overrides(config_dict)

            config = self._dict_to_config(config_dict)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        self._config_cache[cache_key] = config
        logger.debug(f"Configuration loaded from {config_path or 'defaults'}")
        return config

    def _load_config_dict(self, config_path: Optional[Union[str, Path]]) -> Dict[str, Any]:
        """Load configuration dictionary from file or defaults.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary
        """
        defaults = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_path is None:
            if not self.DEFAULT_CONFIG_PATH.exists():
                return defaults
            config_path = self.DEFAULT_CONFIG_PATH

        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {config_file}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration in {config_file} must be a mapping")

        logger.debug(f"Loaded configuration from {config_file}")
        return self._deep_merge(defaults, file_config)

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply SHEET_FUSION_* environment variable overrides.

        Args:
            config_dict: Base configuration dictionary

        Returns:
            Configuration dictionary with environment overrides applied
        """
        for name, config_path in self.ENV_MAPPINGS.items():
            env_value = os.getenv(f"{self.ENV_PREFIX}{name}")
            if env_value is None:
                continue

            value = env_value if name in self.STRING_SETTINGS else self._convert_env_value(env_value)
            self._set_nested_value(config_dict, config_path, value)
            logger.debug(f"Applied environment override: {self.ENV_PREFIX}{name}={value}")

        return config_dict

    def _convert_env_value(self, value: str) -> Any:
        """Convert an environment variable string to bool, int or float."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            if "." not in value:
                return int(value)
            return float(value)
        except ValueError:
            return value

    def _set_nested_value(self, dictionary: Dict[str, Any], path: List[str], value: Any) -> None:
        for key in path[:-1]:
            dictionary = dictionary.setdefault(key, {})
        dictionary[path[-1]] = value

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> Config:
        """Convert configuration dictionary to Config object.

        Raises:
            ConfigurationError: If a value fails validation
        """
        merge = config_dict.get("merge") or {}
        conversion = config_dict.get("conversion") or {}
        logging_section = config_dict.get("logging") or {}

        try:
            conversion_config = ConversionConfig(
                temp_dir=Path(conversion["temp_dir"]) if conversion.get("temp_dir") else None,
                suffix=str(conversion.get("suffix", "_converted")),
            )

            logging_config = LoggingConfig(
                level=str(logging_section.get("level", "WARNING")),
                format=logging_section.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_enabled=bool((logging_section.get("file") or {}).get("enabled", False)),
                file_path=Path((logging_section.get("file") or {}).get("path", "./logs/sheet_fusion.log")),
                console_enabled=bool((logging_section.get("console") or {}).get("enabled", True)),
                structured_enabled=bool((logging_section.get("structured") or {}).get("enabled", False)),
            )

            return Config(
                output_file=Path(merge.get("output_file") or "merged.xlsx"),
                output_sheet_name=str(merge.get("output_sheet_name", "MergedData")),
                conversion=conversion_config,
                logging=logging_config,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def save_config(self, config: Config, config_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Args:
            config: Configuration to save
            config_path: Path to save configuration file

        Raises:
            ConfigurationError: If saving fails
        """
        config_file = Path(config_path)
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, "w", encoding="utf-8") as f:
                yaml.safe_dump(self.config_to_dict(config), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration to {config_file}: {e}") from e

        logger.info(f"Configuration saved to {config_file}")

    def config_to_dict(self, config: Config) -> Dict[str, Any]:
        """Convert Config object to a dictionary in the YAML layout."""
        return {
            "merge": {
                "output_file": str(config.output_file),
                "output_sheet_name": config.output_sheet_name,
            },
            "conversion": {
                "temp_dir": str(config.conversion.temp_dir) if config.conversion.temp_dir else None,
                "suffix": config.conversion.suffix,
            },
            "logging": {
                "level": config.logging.level,
                "format": config.logging.format,
                "file": {
                    "enabled": config.logging.file_enabled,
                    "path": str(config.logging.file_path),
                },
                "console": {
                    "enabled": config.logging.console_enabled,
                },
                "structured": {
                    "enabled": config.logging.structured_enabled,
                },
            },
        }

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._config_cache.clear()


# Global configuration manager instance
config_manager = ConfigManager()
