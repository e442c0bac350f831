"""
Configuration Manager module for the Tool Agent.
"""
import copy
import datetime
import json
import os
import shutil
from typing import Any, Optional, Dict

from ..utils import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "agent": {
        "config_version": 1
    },
    "logging": {
        "console_level": "INFO",
        "file_level": "DEBUG",
        "file_path": None,
        "max_bytes": 10 * 1024 * 1024,
        "backup_count": 5
    },
    "provisioning": {
        "temp_dir": None
    },
    "session": {
        "bundle_suffix": ".app"
    },
    "preferences": {
        "flag_prefix": "--",
        "flag_default_value": "1"
    },
    "uninstall": {
        "auxiliary_processes": {
            "fleet": "osqueryd"
        }
    }
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of base with override applied recursively."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """
    Loads agent configuration from an optional JSON file layered over built-in defaults.
    """
    CURRENT_CONFIG_VERSION = 1

    def __init__(self, config_path: Optional[str] = None):
        """
        Initializes the ConfigManager.

        :param config_path: Path to the JSON configuration file, or None to use defaults only
        :type config_path: Optional[str]
        :raises: FileNotFoundError if a path is given but the file does not exist
        :raises: ValueError if the file is not a JSON object or holds invalid values
        """
        self._config_path = config_path
        self._migration_performed = False

        if self._config_path is None:
            logger.debug("ConfigManager initialized without a config path, using defaults.")
            self._config_data: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        else:
            file_data = self._load_config()
            file_data = self._check_and_migrate_config(file_data)
            self._config_data = _deep_merge(DEFAULT_CONFIG, file_data)
            logger.info(f"Configuration loaded successfully from: {self._config_path}")
            if self._migration_performed:
                logger.info("Configuration migration was performed.")

        self._validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Reads the configuration file.

        :raises: FileNotFoundError if the file doesn't exist
        :raises: ValueError if the content is not a JSON object
        """
        if not os.path.exists(self._config_path):
            logger.critical(f"Configuration file not found: {self._config_path}")
            raise FileNotFoundError(f"Configuration file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.critical(f"Error decoding JSON from config file {self._config_path}: {e}")
            raise ValueError(f"Invalid JSON in configuration file: {e}") from e
        except OSError as e:
            logger.critical(f"Error reading config file {self._config_path}: {e}")
            raise ValueError(f"Could not read configuration file: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Configuration file content is not a valid JSON object.")
        return data

    def _validate_config(self):
        """
        Checks the types of the values the agent relies on.

        :raises: ValueError if a value has the wrong type
        """
        auxiliary = self.get('uninstall.auxiliary_processes')
        if not isinstance(auxiliary, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in auxiliary.items()):
            msg = "Invalid 'uninstall.auxiliary_processes': must map tool id substrings to process names."
            logger.critical(msg)
            raise ValueError(msg)

        for key_path in ('session.bundle_suffix', 'preferences.flag_prefix', 'preferences.flag_default_value'):
            value = self.get(key_path)
            if not isinstance(value, str) or not value:
                msg = f"Invalid '{key_path}': must be a non-empty string."
                logger.critical(msg)
                raise ValueError(msg)

        temp_dir = self.get('provisioning.temp_dir')
        if temp_dir is not None and not isinstance(temp_dir, str):
            msg = "Invalid 'provisioning.temp_dir': must be a string or null."
            logger.critical(msg)
            raise ValueError(msg)

        logger.debug("Configuration validation passed.")

    def _backup_config(self) -> Optional[str]:
        """
        Creates a timestamped copy of the config file next to it.

        :return: Path to the backup file or None if backup failed
        :rtype: Optional[str]
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = f"{self._config_path}.backup_{timestamp}"
        try:
            shutil.copy2(self._config_path, backup_path)
            logger.info(f"Configuration backed up to: {backup_path}")
            return backup_path
        except OSError as e:
            logger.error(f"Failed to create configuration backup at {backup_path}: {e}")
            return None

    def _save_config(self, config_data: Dict[str, Any]):
        """
        Writes config data to the config file through a temporary file.

        :raises: OSError if the file cannot be written
        """
        temp_path = self._config_path + ".tmp"
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, indent=4)
        os.replace(temp_path, self._config_path)
        logger.info(f"Configuration saved to: {self._config_path}")

    def _check_and_migrate_config(self, file_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Brings file data up to the current config version, saving it back after a backup.

        :param file_data: Data read from the config file
        :return: The migrated data
        :raises: ValueError if the backup or the save fails
        """
        agent_section = file_data.get('agent') if isinstance(file_data.get('agent'), dict) else {}
        loaded_version = agent_section.get('config_version', 0)

        if not isinstance(loaded_version, int) or loaded_version < 0:
            logger.warning(f"Invalid 'agent.config_version' ({loaded_version}) found. Migrating from version 0.")
            loaded_version = 0

        if loaded_version > self.CURRENT_CONFIG_VERSION:
            logger.warning(f"Configuration file version (v{loaded_version}) is newer than supported "
                           f"(v{self.CURRENT_CONFIG_VERSION}). Agent may not behave as configured.")
            return file_data
        if loaded_version == self.CURRENT_CONFIG_VERSION:
            return file_data

        logger.info(f"Migrating configuration from v{loaded_version} to v{self.CURRENT_CONFIG_VERSION}...")
        if not self._backup_config():
            raise ValueError("Configuration backup failed. Cannot proceed with migration.")

        migrated = copy.deepcopy(file_data)
        if loaded_version < 1:
            migrated['agent'] = dict(agent_section, config_version=1)

        try:
            self._save_config(migrated)
        except OSError as e:
            logger.critical(f"Failed to save migrated configuration: {e}")
            raise ValueError(f"Failed to save migrated configuration: {e}") from e

        self._migration_performed = True
        return migrated

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Retrieves a configuration value using a dot-separated key path.

        :param key_path: The dot-separated path to the configuration key
        :type key_path: str
        :param default: Value returned when the key is missing
        :type default: Any
        :return: The configuration value or the default value
        :rtype: Any
        """
        value: Any = self._config_data
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                logger.debug(f"Configuration key not found: '{key_path}'. Returning default: {default}")
                return default
            value = value[key]
        return value

    @property
    def migration_performed(self) -> bool:
        return self._migration_performed

    @property
    def all_config(self) -> Dict[str, Any]:
        """
        Returns a copy of the entire configuration dictionary.

        :rtype: Dict[str, Any]
        """
        return copy.deepcopy(self._config_data)
