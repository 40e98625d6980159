import json
import os
import logging

from . import __version__

logger = logging.getLogger(__name__)


def split_list(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class ConfigManager:
    _instance = None
    CONFIG_FILE = os.getenv("LIBWEBNOVEL_CONFIG_FILE", "config/libwebnovel.json")
    DEFAULT_CONFIG = {
        "user_agent": f"libwebnovel/{__version__}",
        "request_timeout": 30.0,
        "max_backoff_wait": 60.0,
        "chapter_workers": 1,
        "enabled_backends": None,
    }
    # Keys whose environment value is a comma separated list
    LIST_KEYS = ("enabled_backends",)

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance.config = cls._instance.load_config()
        return cls._instance

    def load_config(self):
        """Loads configuration from file, falling back to defaults when it is missing."""
        config = self.DEFAULT_CONFIG.copy()

        if os.path.exists(self.CONFIG_FILE):
            try:
                with open(self.CONFIG_FILE, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                config.update(file_config)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config file {self.CONFIG_FILE}: {e}. Using defaults.")
        else:
            logger.debug(f"Config file {self.CONFIG_FILE} not found, using defaults.")

        # Override with Environment Variables
        for key, default_value in self.DEFAULT_CONFIG.items():
            env_key = f"LIBWEBNOVEL_{key.upper()}"
            env_val = os.getenv(env_key)
            if env_val is not None:
                config[key] = self._convert(key, default_value, env_val)

        return config

    def _convert(self, key, default_value, env_val):
        if key in self.LIST_KEYS:
            return split_list(env_val)
        # bool before int: bool is a subclass of int
        if isinstance(default_value, bool):
            return env_val.lower() in ('true', '1', 'yes')
        if isinstance(default_value, int):
            try:
                return int(env_val)
            except ValueError:
                logger.warning(f"Ignoring non-integer value {env_val!r} for {key}")
                return default_value
        if isinstance(default_value, float):
            try:
                return float(env_val)
            except ValueError:
                logger.warning(f"Ignoring non-numeric value {env_val!r} for {key}")
                return default_value
        return env_val

    def reload(self):
        """Re-reads the configuration file and environment."""
        self.config = self.load_config()
        return self.config

    def save_config(self, config=None):
        """Saves configuration to file."""
        if config is None:
            config = self.config

        config_dir = os.path.dirname(self.CONFIG_FILE)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)
        with open(self.CONFIG_FILE, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4)
        self.config = config
        logger.info("Configuration saved.")

    def get(self, key, default=None):
        """Gets a configuration value."""
        value = self.config.get(key)
        return default if value is None else value

    def get_list(self, key, default=None):
        """Gets a list value; a comma separated string is split into its items."""
        value = self.get(key, default)
        if isinstance(value, str):
            return split_list(value)
        return value

    def set(self, key, value):
        """Sets a configuration value and saves to file."""
        self.config[key] = value
        self.save_config()

# Global instance
config_manager = ConfigManager()
