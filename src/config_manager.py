#!/usr/bin/env python3
"""
Configuration Manager for Gemini Chat Exporter
Reads the YAML settings file and layers it over the built-in defaults.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'default_output': '~/Documents/Gemini Exports',
    # Incremental loader timing and thresholds (milliseconds and pixels)
    'scroll': {
        'step_fraction': 0.7,
        'min_step': 400,
        'max_steps': 500,
        'stuck_threshold': 3,
        'origin_threshold': 10,
        'advance_delay_ms': 50,
        'poll_interval_ms': 75,
        'max_settle_polls': 5,
        'initial_settle_ms': 200,
        'initial_confirm_ms': 100,
        'final_settle_ms': 300,
        'final_confirm_ms': 200,
    },
    'extraction': {
        'default_title': 'Gemini Chat Export',
        'max_title_length': 200,
        'max_retries': 3,
        'timeout': 30,
    },
    'output': {
        'show_timestamps': True,
        'filename_prefix': 'gemini',
        'filename_max_length': 50,
        'extension': 'md',
    },
}

def merge_settings(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with overrides applied, recursing into nested sections"""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged

class ConfigManager:
    """Loads, saves and updates the exporter settings file"""

    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "gemini_chat_exporter"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path).expanduser() if config_path else self.DEFAULT_CONFIG_FILE

    def load_config(self) -> Dict[str, Any]:
        """
        Load settings, writing a default file on first use

        Keys missing from the file keep their default values. An unreadable
        or malformed file is reported and the defaults are used instead.

        Returns:
            Settings dictionary
        """
        if not self.config_path.exists():
            logger.info(f"No config at {self.config_path}, writing defaults")
            try:
                self.save_config(DEFAULT_CONFIG)
            except OSError:
                return copy.deepcopy(DEFAULT_CONFIG)

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                stored = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read config {self.config_path}: {e}")
            logger.info("Falling back to built-in defaults")
            return copy.deepcopy(DEFAULT_CONFIG)

        if not isinstance(stored, dict):
            logger.warning(f"Ignoring config {self.config_path}: expected a mapping")
            return copy.deepcopy(DEFAULT_CONFIG)

        logger.debug(f"Loaded config from {self.config_path}")
        return merge_settings(DEFAULT_CONFIG, stored)

    def save_config(self, config: Dict[str, Any]) -> None:
        """Write settings to the config file"""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(config, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            logger.debug(f"Wrote config to {self.config_path}")
        except OSError as e:
            logger.error(f"Could not write config {self.config_path}: {e}")
            raise

    def get_nested_value(self, config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
        """Look up a dotted key such as 'scroll.max_steps'"""
        value = config
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Merge updates into the stored settings and save them"""
        self.save_config(merge_settings(self.load_config(), updates))
