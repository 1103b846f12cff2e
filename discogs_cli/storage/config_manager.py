"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from discogs_cli.exceptions import ConfigurationError
from discogs_cli.models.config import ClientConfig

log = logging.getLogger(__name__)

# Environment variables that override values from the INI file
ENV_OVERRIDES = {
    "DISCOGS_CONSUMER_KEY": "consumer_key",
    "DISCOGS_CONSUMER_SECRET": "consumer_secret",
    "DISCOGS_TOKEN": "access_token",
}

SENSITIVE_KEYS = ("consumer_secret", "access_token")


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ClientConfig:
        """
        Loads configuration from the INI file, applies environment and CLI
        overrides, and validates it.

        A missing file is not an error: the client then runs anonymously unless
        credentials come from the environment or the command line.

        Args:
            cli_options: A dictionary of options provided via the command line.
                ``None`` values are ignored.

        Returns:
            A validated ClientConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_data: dict[str, Any] = {}

        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_data = self._get_config_as_dict()
        else:
            log.debug(f"No configuration file at '{self.config_file_path}'")

        for env_var, key in ENV_OVERRIDES.items():
            if value := os.getenv(env_var):
                config_data[key] = value

        if cli_options:
            config_data.update({k: v for k, v in cli_options.items() if v is not None})

        try:
            return ClientConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save. Missing keys take the
                model defaults.
        """
        try:
            config = ClientConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        parser = configparser.ConfigParser(interpolation=None)
        parser["DEFAULT"] = {
            key: self._to_ini_value(getattr(config, key))
            for key in ClientConfig.get_ini_keys()
        }

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    @staticmethod
    def _to_ini_value(value: Any) -> str:
        return "" if value is None else str(value)

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        try:
            max_requests = section.getint("max_requests", 0)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for 'max_requests': {e}") from e

        return {
            "app_name": section.get("app_name", ""),
            "consumer_key": section.get("consumer_key", "") or None,
            "consumer_secret": section.get("consumer_secret", "") or None,
            "access_token": section.get("access_token", "") or None,
            "max_requests": max_requests,
        }

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = ClientConfig()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in ClientConfig.get_ini_keys():
            if key not in config_section:
                config_section[key] = self._to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
