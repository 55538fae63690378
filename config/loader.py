"""Configuration loader for YAML and JSON configuration files."""

import json
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
import logging
from .settings import ApplicationConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and manages application configuration."""

    ENV_PREFIX = "PHANTOM_"
    DEFAULT_FILES = [
        "phantom.yaml",
        "registration.yaml",
        "application.yaml"
    ]

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize the configuration loader.

        Args:
            config_dir: Directory containing default configuration files.
                       Defaults to 'config/defaults' next to this module.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent / "defaults"
        self.config_dir = Path(config_dir)
        self.config: Optional[ApplicationConfig] = None
        self.config_file: Optional[Path] = None

    def load(self, config_file: Optional[Path] = None) -> ApplicationConfig:
        """Load configuration from file.

        Args:
            config_file: Path to configuration file (YAML or JSON).
                        If None, loads from default locations.

        Returns:
            ApplicationConfig object with loaded settings.
        """
        self.config_file = Path(config_file) if config_file else None

        if self.config_file:
            config_data = self.load_file(self.config_file)
        else:
            config_data = self._load_defaults()

        if not isinstance(config_data, dict):
            raise ValueError(
                f"Configuration must be a mapping, got {type(config_data).__name__}"
            )

        config_data = self._merge_env_vars(config_data)

        self.config = ApplicationConfig.from_dict(config_data)

        logger.info("Configuration loaded successfully")
        return self.config

    def save(self, config: ApplicationConfig, file_path: Path) -> None:
        """Save configuration to file.

        Args:
            config: Configuration object to save.
            file_path: Path to save configuration to.
        """
        self.dump(config.to_dict(), Path(file_path))
        logger.info(f"Configuration saved to {file_path}")

    @staticmethod
    def dump(data: Dict[str, Any], file_path: Path) -> None:
        """Write a plain dictionary as YAML or JSON, chosen by file suffix."""
        file_path = Path(file_path)
        if file_path.suffix in [".yaml", ".yml"]:
            with open(file_path, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        elif file_path.suffix == ".json":
            with open(file_path, 'w') as f:
                json.dump(data, f, indent=2)
        else:
            raise ValueError(f"Unsupported file format: {file_path.suffix}")

    @staticmethod
    def load_file(file_path: Path) -> Any:
        """Load data from a single YAML or JSON file.

        Args:
            file_path: Path to the file.

        Returns:
            Parsed file contents.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, 'r') as f:
            if file_path.suffix in [".yaml", ".yml"]:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {file_path}: {e}") from e
                return {} if data is None else data
            elif file_path.suffix == ".json":
                return json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {file_path.suffix}")

    def _load_defaults(self) -> Dict[str, Any]:
        """Load default configuration from defaults directory.

        Returns:
            Merged dictionary of all default configurations.
        """
        config_data = {}

        for filename in self.DEFAULT_FILES:
            file_path = self.config_dir / filename
            if file_path.exists():
                try:
                    config_data.update(self.load_file(file_path))
                    logger.debug(f"Loaded default config: {filename}")
                except (OSError, TypeError, ValueError) as e:
                    logger.warning(f"Failed to load {filename}: {e}")

        return config_data

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge environment variables into configuration.

        Environment variables should be prefixed with 'PHANTOM_' and use
        double underscores for nested values.
        Example: PHANTOM_REGISTRATION__MAX_REGISTRATION_ERROR=1.5

        Args:
            config_data: Current configuration dictionary.

        Returns:
            Configuration dictionary with environment variables merged.
        """
        for key, value in os.environ.items():
            if key.startswith(self.ENV_PREFIX):
                keys = key[len(self.ENV_PREFIX):].lower().split("__")

                current = config_data
                for k in keys[:-1]:
                    if not isinstance(current.get(k), dict):
                        current[k] = {}
                    current = current[k]

                # Parse as JSON so numbers and booleans keep their type
                try:
                    current[keys[-1]] = json.loads(value)
                except json.JSONDecodeError:
                    current[keys[-1]] = value

                logger.debug(f"Loaded environment variable: {key}")

        return config_data

    def validate(self, config: Optional[ApplicationConfig] = None) -> bool:
        """Validate configuration for correctness.

        Args:
            config: Configuration to validate. Uses loaded config if None.

        Returns:
            True if configuration is valid, False otherwise.
        """
        if config is None:
            config = self.config

        if config is None:
            logger.error("No configuration to validate")
            return False

        tolerance = config.registration.degeneracy_tolerance
        if not isinstance(tolerance, (int, float)) or not 0 < tolerance < 1:
            logger.error("Invalid degeneracy tolerance")
            return False

        max_error = config.registration.max_registration_error
        if not isinstance(max_error, (int, float)) or max_error < 0:
            logger.error("Invalid maximum registration error")
            return False

        if not isinstance(config.phantom_definition.landmarks, list):
            logger.error("Phantom landmarks must be a list")
            return False

        if len(config.phantom_definition.landmarks) < 3:
            logger.warning("Phantom definition has fewer than 3 landmarks")

        return True

    def get_config(self) -> Optional[ApplicationConfig]:
        """Get the currently loaded configuration.

        Returns:
            Current configuration or None if not loaded.
        """
        return self.config

    def reload(self) -> ApplicationConfig:
        """Reload configuration from the file it was last loaded from.

        Returns:
            Reloaded configuration.
        """
        logger.info("Reloading configuration")
        return self.load(self.config_file)
