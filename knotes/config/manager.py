"""
Configuration Manager
======================

Manages saved configuration: server address, theme and sync timings.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages saved configuration for the knotes client."""

    DEFAULT_CONFIG: Dict[str, Any] = {
        "server_url": "http://localhost:8080",
        "theme": "light",
        "autosave_delay_ms": 1000,
        "request_timeout": 10.0
    }

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the configuration file path (KNOTES_CONFIG or the home directory)."""
        override = os.environ.get("KNOTES_CONFIG")
        if override:
            return Path(override)
        return Path.home() / "knotes_config.json"

    @classmethod
    def load(cls) -> Dict[str, Any]:
        """Load saved configuration.

        Returns:
            Dictionary containing configuration values, with defaults for missing keys
        """
        config = cls._load_saved()

        env_server = os.environ.get("KNOTES_SERVER_URL")
        if env_server:
            config["server_url"] = env_server

        return config

    @classmethod
    def _load_saved(cls) -> Dict[str, Any]:
        """Defaults overlaid with the file contents, without env overrides."""
        config_file = cls.get_config_file()
        config = cls.DEFAULT_CONFIG.copy()

        if config_file.exists():
            try:
                saved = json.loads(config_file.read_text(encoding="utf-8"))
                if isinstance(saved, dict):
                    for key, value in saved.items():
                        if key not in cls.DEFAULT_CONFIG:
                            continue
                        if cls._is_valid(key, value):
                            config[key] = value
                        else:
                            logger.warning(
                                "Ignoring invalid %s=%r in %s, using %r",
                                key, value, config_file, cls.DEFAULT_CONFIG[key]
                            )
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable config %s: %s", config_file, e)

        return config

    @classmethod
    def _is_valid(cls, key: str, value: Any) -> bool:
        """Check a saved value has the type of its default (numbers must be positive)."""
        default = cls.DEFAULT_CONFIG[key]
        if isinstance(value, bool):
            return False
        if isinstance(default, str):
            return isinstance(value, str) and bool(value.strip())
        if isinstance(default, int):
            return isinstance(value, int) and value > 0
        return isinstance(value, (int, float)) and value > 0

    @classmethod
    def save(cls, **values: Any) -> None:
        """Save configuration to file.

        Only known keys with non-None values are written; everything else
        keeps its saved value.

        Args:
            **values: e.g. theme="dark", server_url="https://knotes.example"
        """
        config_file = cls.get_config_file()
        config = cls._load_saved()

        for key, value in values.items():
            if key in cls.DEFAULT_CONFIG and value is not None:
                config[key] = value

        try:
            config_file.write_text(
                json.dumps(config, indent=2),
                encoding="utf-8"
            )
        except OSError as e:
            logger.warning("Could not write config %s: %s", config_file, e)

    @classmethod
    def get(cls, key: str) -> Any:
        """Get a single configuration value (default if unset)."""
        return cls.load().get(key, cls.DEFAULT_CONFIG.get(key))
