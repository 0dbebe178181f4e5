"""
Configuration service for the CDC relay
"""

import json
import yaml
from pathlib import Path

from ..exceptions import ConfigurationError
from ..models.config import RelayConfig


class ConfigService:
    """Service for loading and managing configuration"""

    def __init__(self):
        self._config: RelayConfig = None

    def load_config(self, config_path: str) -> RelayConfig:
        """Load configuration from a YAML or JSON file"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        suffix = config_path.suffix.lower()
        if suffix not in ('.json', '.yml', '.yaml'):
            raise ConfigurationError(f"Unsupported configuration format: {config_path.suffix}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if suffix == '.json':
                    config_dict = json.load(f)
                else:
                    config_dict = yaml.safe_load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON configuration: {e}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML configuration: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration: {e}")

        self._config = RelayConfig.from_dict(config_dict)
        return self._config

    def get_config(self) -> RelayConfig:
        """Get current configuration"""
        if self._config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._config
