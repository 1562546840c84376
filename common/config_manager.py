import json
import os
import logging
from typing import Dict, Any, Optional

from common.exceptions import ConfigurationError


class ConfigManager:

    def __init__(self, config_file: str = "config/config.json"):
        self.config_file = config_file
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load the config file, falling back to defaults"""
        defaults = self._get_default_config()
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                logging.info(f"Configuration loaded: {self.config_file}")
                return self._merge(defaults, loaded)
            else:
                logging.warning(f"Configuration file not found: {self.config_file}")
                return defaults
        except (OSError, ValueError) as e:
            logging.error(f"Configuration load error: {e}")
            return defaults

    def _merge(self, base: Dict[str, Any], override: Any) -> Dict[str, Any]:
        if not isinstance(override, dict):
            logging.error(f"Configuration root must be an object: {self.config_file}")
            return base
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:

        return {
            "session": {
                "max_misses": 5,
                "num_cells": 9,
                "initial_delay": 2000,
                "min_delay": 500,
                "delay_step": 100
            },
            "storage": {
                "high_score_file": "data/high_score.json"
            },
            "logging": {
                "level": "INFO"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:

        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def session_config(self):
        """Build a validated Configuration from the ``session`` section"""
        from arcade.game.models import Configuration

        fields = ("max_misses", "num_cells", "initial_delay", "min_delay", "delay_step")
        values = {}
        for name in fields:
            raw = self.get(f"session.{name}")
            try:
                values[name] = int(raw)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    "Session setting must be an integer", repr(raw), f"session.{name}"
                )
        return Configuration(**values)


# Process-wide config instance
_config_instance: Optional[ConfigManager] = None

def get_config() -> ConfigManager:
    """Return the process-wide config instance"""
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigManager()
    return _config_instance
