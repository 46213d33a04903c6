"""Configuration loader for clean settings."""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load and manage configuration from YAML files."""

    def __init__(self, config_dir: str = None, settings_file: str = "settings.yaml"):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files (defaults to project config/)
            settings_file: Name of the settings file inside config_dir
        """
        if config_dir is None:
            project_root = Path(__file__).parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = Path(config_dir)
        self.settings_file = settings_file
        self._settings = None

    def load_settings(self, config_file: str = None) -> Dict[str, Any]:
        """
        Load settings configuration.

        Args:
            config_file: Name of the settings file (defaults to settings_file)

        Returns:
            Settings dict

        Raises:
            ConfigurationError: If config file not found or invalid
        """
        if self._settings is not None:
            return self._settings

        config_path = self.config_dir / (config_file or self.settings_file)

        if not config_path.exists():
            raise ConfigurationError(f"Settings file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML config: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load config: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file must contain a mapping: {config_path}")

        self._settings = data
        logger.info(f"Loaded settings from: {config_path}")
        return self._settings

    def get_global_section(self, required: bool = False) -> Dict[str, Any]:
        """
        Return the whole ``global`` section.

        Args:
            required: Raise instead of falling back to an empty dict when the
                settings file is missing

        Raises:
            ConfigurationError: If the file is invalid, or missing while required
        """
        config_path = self.config_dir / self.settings_file
        if self._settings is None and not required and not config_path.exists():
            logger.debug(f"Using built-in defaults: {config_path} not found")
            return {}
        settings = self.load_settings()
        section = settings.get("global") or {}
        if not isinstance(section, dict):
            raise ConfigurationError("'global' section must be a mapping")
        return section


# Global config loader instance
_config_loader = None


def get_config_loader(config_dir: str = None, settings_file: str = "settings.yaml") -> ConfigLoader:
    """
    Get global config loader instance.

    Args:
        config_dir: Optional config directory; replaces the cached loader when given
        settings_file: Name of the settings file inside config_dir

    Returns:
        ConfigLoader instance
    """
    global _config_loader

    if _config_loader is None or config_dir is not None:
        _config_loader = ConfigLoader(config_dir, settings_file)

    return _config_loader
