"""Simple YAML configuration loader for Loudmeter."""

import os
import copy
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..levels import LoudnessError, build_normalizer, classify

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
    },
    "levels": {
        "window_seconds": 30.0,
        "activity_threshold": 12.0,
        "silence_floor": 8.0,
        "nominal_tick_seconds": 0.1,
        "keep_boundary_sample": True,
        "max_duration_seconds": None,
        "normalizer": {"kind": "decibel", "offset": 90.0, "max_display": 100.0},
    },
    "bands": {
        "quiet_max": 25.0,
        "normal_max": 50.0,
    },
    "logging": {
        "level": "INFO",
        "file_path": "logs/loudmeter.log",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class LoudmeterConfig:
    """Loudmeter configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults are used
                        and relative paths resolve against the working directory.
        """
        if config_path is None:
            self.config_file = None
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            self._resolve_paths(self.config, Path.cwd())
            return

        self.config_file = Path(config_path)
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        config = _merge(DEFAULT_CONFIG, loaded)
        # Normalizer options are specific to their kind, so never mix in the defaults
        loaded_levels = loaded.get('levels')
        loaded_normalizer = loaded_levels.get('normalizer') if isinstance(loaded_levels, dict) else None
        if isinstance(loaded_normalizer, dict):
            config['levels']['normalizer'] = dict(loaded_normalizer)
        self._resolve_paths(config, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any], base_dir: Path) -> None:
        """Resolve the log file path relative to the config file location."""
        log_path = config.get('logging', {}).get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(base_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'levels.window_seconds').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config
        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")


@dataclass
class LevelSettings:
    """Aggregator and metering parameters taken from the ``levels`` and ``bands`` sections."""
    window_seconds: float = 30.0
    activity_threshold: float = 12.0
    silence_floor: float = 8.0
    nominal_tick_seconds: float = 0.1
    keep_boundary_sample: bool = True
    max_duration_seconds: Optional[float] = None
    normalizer: Dict[str, Any] = field(default_factory=lambda: {"kind": "decibel"})
    quiet_max: float = 25.0
    normal_max: float = 50.0

    @classmethod
    def from_config(cls, config: LoudmeterConfig) -> "LevelSettings":
        try:
            max_duration = config.get('levels.max_duration_seconds')
            settings = cls(
                window_seconds=float(config.get('levels.window_seconds', 30.0)),
                activity_threshold=float(config.get('levels.activity_threshold', 12.0)),
                silence_floor=float(config.get('levels.silence_floor', 8.0)),
                nominal_tick_seconds=float(config.get('levels.nominal_tick_seconds', 0.1)),
                keep_boundary_sample=bool(config.get('levels.keep_boundary_sample', True)),
                max_duration_seconds=float(max_duration) if max_duration else None,
                normalizer=dict(config.get('levels.normalizer') or {"kind": "decibel"}),
                quiet_max=float(config.get('bands.quiet_max', 25.0)),
                normal_max=float(config.get('bands.normal_max', 50.0)),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid levels configuration: {e}")

        settings.validate()
        return settings

    def validate(self) -> None:
        """Check values that would otherwise only fail once audio is flowing."""
        try:
            classify(0.0, self.quiet_max, self.normal_max)
            build_normalizer(self.normalizer)
        except LoudnessError as e:
            raise ValueError(f"Invalid levels configuration: {e}")
