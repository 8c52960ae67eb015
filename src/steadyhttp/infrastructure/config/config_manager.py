"""Configuration manager for loading and validating .steadyhttp.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from steadyhttp.domain.config import ClientConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".steadyhttp.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Loads client configuration from .steadyhttp.yml and environment variables

    Configuration priority:
    1. Default values
    2. .steadyhttp.yml file (searched from current directory upward)
    3. Environment variables (STEADYHTTP_*)
    4. Explicit Client.timeout() / Client.retry() calls
    """

    DEFAULT_CONFIG = {
        "timeout": None,
        "max_retries": 0,
        "backoff": 0.0,
        "min_retry_delay": 0.1,
        "retry_delay_range": 0.2,
    }

    ENV_OVERRIDES = {
        "STEADYHTTP_TIMEOUT": ("timeout", float),
        "STEADYHTTP_MAX_RETRIES": ("max_retries", int),
        "STEADYHTTP_BACKOFF": ("backoff", float),
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize config manager

        Args:
            config_path: Path to .steadyhttp.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: ClientConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> ClientConfig:
        """Load configuration from file and environment, then validate

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file cannot be read or is not a mapping
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"{self.config_path} must contain a mapping")
            config_dict.update(file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return ClientConfig(**config_dict)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        for env_name, (key, convert) in self.ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if not raw:
                continue
            try:
                config[key] = convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from e
        return config

    def get_client_config(self) -> ClientConfig:
        """Get the validated client configuration"""
        return self.config
