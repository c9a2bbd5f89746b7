"""
Configuration Service - Block settings
Loads YAML config with environment variable overrides
"""
import copy
import logging
import os
import yaml
from typing import Any, Dict, List, Optional
from pathlib import Path


logger = logging.getLogger(__name__)


class ConfigService:
    """
    Centralized configuration management with environment overrides.

    Priority order:
    1. Environment variables (highest)
    2. YAML config file
    3. Default values (lowest)
    """

    _instance: Optional['ConfigService'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        """Singleton pattern for global config access"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize only once"""
        if not self._config:
            self.reload()

    def reload(self) -> None:
        """Load config from defaults, file and environment"""
        self._config = self._get_defaults()
        self._merge(self._config, self._load_yaml_config())
        self._apply_env_overrides()

    def _config_paths(self) -> List[Path]:
        """Candidate config files, first existing one wins"""
        paths = []
        if env_path := os.environ.get('STATUSBAR_CONFIG'):
            paths.append(Path(env_path).expanduser())

        xdg = os.environ.get('XDG_CONFIG_HOME') or str(Path.home() / '.config')
        paths.append(Path(xdg) / 'statusbar' / 'config.yaml')
        paths.append(Path('config/default.yaml'))  # Development path
        return paths

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        for config_path in self._config_paths():
            if config_path.exists():
                try:
                    with open(config_path, 'r') as f:
                        loaded = yaml.safe_load(f) or {}
                    if not isinstance(loaded, dict):
                        logger.warning(f"Ignoring {config_path}: top level is not a mapping")
                        return {}
                    return loaded
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Failed to load {config_path}: {e}")

        return {}

    @staticmethod
    def _merge(target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Deep-merge source into target"""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigService._merge(target[key], value)
            else:
                target[key] = value

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides"""
        # Timezone
        if env_tz := os.environ.get('TIMEZONE'):
            self._config['timezone'] = env_tz

        # Weather: "latitude,longitude"
        if env_location := os.environ.get('MY_LOCATION'):
            self._config.setdefault('weather', {})
            self._config['weather']['location'] = env_location

        # Exchange rate
        if env_key := os.environ.get('EXCHANGE_RATE_API_KEY'):
            self._config.setdefault('currency', {})
            self._config['currency']['api_key'] = env_key

        # Output
        if env_sink := os.environ.get('STATUSBAR_SINK'):
            self._config.setdefault('output', {})
            self._config['output']['sink'] = env_sink

        # Logging
        if env_level := os.environ.get('LOG_LEVEL'):
            self._config.setdefault('logging', {})
            self._config['logging']['level'] = env_level

    def _get_defaults(self) -> Dict[str, Any]:
        """Return default configuration"""
        return copy.deepcopy({
            'timezone': '',
            'output': {
                'sink': 'xsetroot',
            },
            'scheduler': {
                'workers': 2,
            },
            'cache': {
                'directory': '',
            },
            'weather': {
                'enabled': True,
                'location': '',
                'refresh_interval_seconds': 3600,
                'timeout': 10,
            },
            'currency': {
                'enabled': True,
                'api_key': '',
                'base': 'USD',
                'quote': 'EUR',
                'refresh_interval_seconds': 3600,
                'timeout': 10,
            },
            'memory': {
                'path': '/proc/meminfo',
                'interval': 5,
            },
            'battery': {
                'enabled': True,
                'path': '/sys/class/power_supply/BAT0',
            },
            'logging': {
                'level': 'INFO',
            }
        })

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value using dot notation
        Example: config.get('weather.location')
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def get_all(self) -> Dict[str, Any]:
        """Get entire configuration dict"""
        return copy.deepcopy(self._config)

    def set(self, key: str, value: Any) -> None:
        """
        Set config value using dot notation
        Example: config.set('weather.enabled', False)
        """
        keys = key.split('.')
        target = self._config

        for k in keys[:-1]:
            target = target.setdefault(k, {})

        target[keys[-1]] = value


# Global instance
config = ConfigService()
