"""
Manages loading and saving of the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from corpus_cli.exceptions import ConfigurationError
from corpus_cli.models.config import CorpusConfig

log = logging.getLogger(__name__)

_INT_KEYS = {
    key
    for key, field in CorpusConfig.model_fields.items()
    if field.annotation is int
}


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> CorpusConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error; built-in defaults are used instead.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated CorpusConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(f"No config file at '{self.config_file_path}', using defaults.")

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return CorpusConfig(
                **config_from_file, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Writes a complete configuration file, using model defaults for any
        setting not given.

        Raises:
            ConfigurationError: If the settings are invalid or the file cannot be written.
        """
        try:
            config = CorpusConfig(**(settings or {}))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        parser = configparser.ConfigParser(interpolation=None)
        parser["DEFAULT"] = {
            key: str(getattr(config, key)) for key in sorted(CorpusConfig.get_ini_keys())
        }

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the known keys of the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        values: dict[str, Any] = {}
        for key in CorpusConfig.get_ini_keys():
            if key not in section:
                continue
            if key in _INT_KEYS:
                try:
                    values[key] = section.getint(key)
                except ValueError as e:
                    raise ConfigurationError(
                        f"Config key '{key}' must be an integer: {e}"
                    ) from e
            else:
                values[key] = section.get(key)

        unknown = set(section) - CorpusConfig.get_ini_keys()
        if unknown:
            log.warning(
                f"[yellow]Ignoring unknown config keys: {', '.join(sorted(unknown))}"
                "[/yellow]"
            )
        return values

    def get_config_as_dict(self) -> dict[str, Any]:
        """Returns the file's settings, or an empty dict when there is no file."""
        if not self.config_file_path.is_file():
            return {}
        self._parser.read(self.config_file_path, encoding="utf-8")
        return self._get_config_as_dict()
