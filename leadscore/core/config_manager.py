"""
Centralized configuration management for the LeadScore engine.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any
import logging

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'data': {
        'path': 'data/mock/',
        'contacts_file': 'contacts.json',
        'deals_file': 'deals.json',
        'engagement_file': 'engagementData.json'
    },
    'scoring': {
        'weights': {
            'email_opens': 10,
            'website_visits': 15,
            'form_submissions': 25,
            'deal_size': 0.0001,
            'recency': 20,
            'frequency': 30
        },
        'thresholds': {
            'hot': 80,
            'warm': 50
        },
        'recency_days': 7,
        'frequency_min_days': 3,
        'default_deal_size': 25000
    },
    'repositories': {
        'latency_ms': 0
    },
    'api': {
        'host': 'localhost',
        'port': 8000,
        'debug': False
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    },
    'output': {
        'reports_dir': 'outputs/reports',
        'lists_dir': 'outputs/lists'
    }
}


ENV_OVERRIDES = {
    'LEADSCORE_DATA_PATH': ('data.path', str),
    'LEADSCORE_LOG_LEVEL': ('logging.level', str),
    'LEADSCORE_API_PORT': ('api.port', int),
    'LEADSCORE_LATENCY_MS': ('repositories.latency_ms', int)
}


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` in place and return ``base``."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            merge_config(base[key], value)
        else:
            base[key] = value
    return base


class ConfigManager:
    """
    Layered configuration for the scoring engine.

    Layers, later wins: built-in defaults, ``base_config.yaml``,
    ``{environment}_config.yaml``, then ``LEADSCORE_*`` environment variables.
    """

    def __init__(self, config_dir: str = "config", environment: str = None):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory holding the YAML files
            environment: Environment name (dev, test, prod); defaults to LEADSCORE_ENV or dev
        """
        self.config_dir = Path(config_dir)
        self.environment = environment or os.getenv('LEADSCORE_ENV', 'dev')
        self._config = self._load_layers()
        self._apply_env_overrides()

    def _load_layers(self) -> Dict[str, Any]:
        config = copy.deepcopy(DEFAULT_CONFIG)
        layer_files = ["base_config.yaml", f"{self.environment}_config.yaml"]

        try:
            for file_name in layer_files:
                path = self.config_dir / file_name
                if not path.exists():
                    logger.debug(f"No configuration file at {path}")
                    continue
                with open(path, 'r') as f:
                    merge_config(config, yaml.safe_load(f) or {})
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load configuration from {self.config_dir}, using defaults: {e}")
            return copy.deepcopy(DEFAULT_CONFIG)

        logger.info(f"Configuration loaded for environment: {self.environment}")
        return config

    def _apply_env_overrides(self):
        for env_var, (key, cast) in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if not raw:
                continue
            try:
                self.set(key, cast(raw))
            except ValueError:
                logger.warning(f"Ignoring invalid value for {env_var}: {raw!r}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted key, e.g. ``'scoring.thresholds.hot'``.

        Args:
            key: Dotted configuration key
            default: Returned when any segment is missing

        Returns:
            Configuration value
        """
        node = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any):
        """Set a value by dotted key, creating intermediate sections."""
        *parents, leaf = key.split('.')
        node = self._config
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value

    def get_data_config(self) -> Dict[str, Any]:
        return self.get('data', {})

    def get_scoring_config(self) -> Dict[str, Any]:
        return self.get('scoring', {})

    def get_repository_config(self) -> Dict[str, Any]:
        return self.get('repositories', {})

    def get_api_config(self) -> Dict[str, Any]:
        return self.get('api', {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self.get('logging', {})

    def get_output_config(self) -> Dict[str, Any]:
        return self.get('output', {})

    def validate_config(self) -> bool:
        """
        Check that the settings the engine cannot run without are present.

        Returns:
            False when a required key is missing, True otherwise

        Raises:
            ConfigurationError: If the warm threshold is above the hot threshold
        """
        required_keys = ['data.path', 'scoring.weights', 'scoring.thresholds.hot',
                         'scoring.thresholds.warm', 'api.port']
        missing = [key for key in required_keys if self.get(key) is None]
        if missing:
            logger.error(f"Missing required configuration: {missing}")
            return False

        hot = self.get('scoring.thresholds.hot')
        warm = self.get('scoring.thresholds.warm')
        if warm > hot:
            raise ConfigurationError(
                f"Warm threshold ({warm}) must not exceed hot threshold ({hot})"
            )
        return True

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)

    def save_config(self, file_path: str):
        """Write the effective configuration (overrides included) as YAML."""
        with open(file_path, 'w') as f:
            yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)


# Global configuration instance
_config_manager = None


def get_config() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def init_config(config_dir: str = "config", environment: str = None) -> ConfigManager:
    """
    Initialize global configuration manager.

    Args:
        config_dir: Configuration directory
        environment: Environment name

    Returns:
        ConfigManager instance
    """
    global _config_manager
    _config_manager = ConfigManager(config_dir, environment)
    return _config_manager
