"""
Configuration loader for the delivery client.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from ..core.exceptions import ConfigError


logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


class DeliveryConfig:
    """
    Configuration for the delivery client.

    Loads a YAML configuration file (or defaults), optionally a ``.env``
    file, then applies environment variable overrides:

    - DELIVERY_SPACE_ID
    - DELIVERY_ACCESS_TOKEN
    - DELIVERY_PREVIEW
    - DELIVERY_DEFAULT_LOCALE
    - DELIVERY_BASE_URL
    - DELIVERY_CACHE_DIR
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        env_file: Optional[Path] = None,
        load_env_file: bool = False,
    ):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (optional)
            env_file: Path to a .env file; implies ``load_env_file``
            load_env_file: Whether to load a .env file from the working directory
        """
        self.config_path = Path(config_path) if config_path else None
        if env_file is not None or load_env_file:
            self._load_env_file(env_file)

        self.config = self._default_config()
        if self.config_path:
            _merge(self.config, self._load_config())
        self._apply_env_overrides()

    def _load_env_file(self, env_file: Optional[Path]) -> None:
        if env_file is not None:
            loaded = load_dotenv(dotenv_path=env_file, override=False)
        else:
            loaded = load_dotenv(override=False)
        logger.debug(f"Loaded .env file: {loaded}")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigError(f"Config file not found: {self.config_path}")

        logger.info(f"Loading config from: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")
        return config

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "client": {
                "space_id": None,
                "access_token": None,
                "preview": False,
                "default_locale": None,
                "base_url": None,
            },
            "transport": {
                "timeout": 30,
                "max_retries": 3,
                "rate_limit_delay": 0.0,
                "user_agent": None,
            },
            "cache": {
                # none | memory | file
                "backend": "none",
                "dir": None,
            },
            "logging": {
                "level": "INFO",
                "structured": False,
            },
        }

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        client = self.config.setdefault("client", {})
        for env_name, key in (
            ("DELIVERY_SPACE_ID", "space_id"),
            ("DELIVERY_ACCESS_TOKEN", "access_token"),
            ("DELIVERY_DEFAULT_LOCALE", "default_locale"),
            ("DELIVERY_BASE_URL", "base_url"),
        ):
            value = os.environ.get(env_name)
            if value:
                client[key] = value

        preview = os.environ.get("DELIVERY_PREVIEW")
        if preview:
            client["preview"] = preview.strip().lower() in TRUE_VALUES

        cache_dir = os.environ.get("DELIVERY_CACHE_DIR")
        if cache_dir:
            cache = self.config.setdefault("cache", {})
            cache["dir"] = cache_dir
            cache["backend"] = "file"

    def get_client_config(self) -> Dict[str, Any]:
        """Get client configuration."""
        return self.config.get("client", {})

    def get_transport_config(self) -> Dict[str, Any]:
        """Get transport configuration."""
        return self.config.get("transport", {})

    def get_cache_config(self) -> Dict[str, Any]:
        """Get metadata cache configuration."""
        return self.config.get("cache", {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.config.get("logging", {})

    def require_credentials(self) -> None:
        """
        Raises:
            ConfigError: If the space id or the access token is missing
        """
        missing = [key for key in ("space_id", "access_token") if not self.get(f"client.{key}")]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join('client.' + m for m in missing)}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge ``override`` into ``base``."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
