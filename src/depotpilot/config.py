"""Configuration management for DepotPilot."""

import os
import sys
from pathlib import Path
from typing import Any

import yaml

from depotpilot.models.config import AppConfig


class ConfigManager:
    """Manages application configuration with YAML file and environment variable support."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. If None, uses DEPOTPILOT_CONFIG_PATH
                        environment variable or defaults to platform-specific config directory
        """
        if config_path is None:
            env_path = os.getenv("DEPOTPILOT_CONFIG_PATH")
            if env_path:
                config_path = Path(env_path).expanduser()
            else:
                if sys.platform == "win32":
                    # Windows: %APPDATA%\DepotPilot
                    config_dir = Path(os.getenv("APPDATA", str(Path.home()))) / "DepotPilot"
                elif sys.platform == "darwin":
                    # macOS: ~/Library/Application Support/DepotPilot
                    config_dir = Path.home() / "Library" / "Application Support" / "DepotPilot"
                else:
                    # Linux/Unix: ~/.config/depotpilot
                    config_dir = Path.home() / ".config" / "depotpilot"

                config_path = config_dir / "config.yaml"

        self.config_path = config_path
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load configuration from file and apply environment variable overrides.

        Returns:
            Loaded configuration
        """
        config_data: dict[str, Any] = {}

        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        config = AppConfig(**config_data)
        return self._apply_env_overrides(config)

    def save(self, config: AppConfig) -> None:
        """Save configuration to YAML file.

        Args:
            config: Configuration to save
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        config_dict = self._config_to_dict(config)

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(config_dict, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    def _config_to_dict(self, config: AppConfig) -> dict[str, Any]:
        """Convert config to dictionary with Path objects as strings."""
        config_dict = config.model_dump(mode="json", exclude_none=True)

        def convert_paths(obj: Any) -> Any:  # noqa: ANN401
            if isinstance(obj, dict):
                return {k: convert_paths(v) for k, v in obj.items()}
            if isinstance(obj, list):
                return [convert_paths(item) for item in obj]
            if isinstance(obj, Path):
                return str(obj)
            return obj

        return convert_paths(config_dict)

    def _apply_env_overrides(self, config: AppConfig) -> AppConfig:
        """Apply environment variable overrides.

        Environment variables use the format: DEPOTPILOT_<SECTION>_<KEY>
        Examples:
            - DEPOTPILOT_SERVER_PORT=9000
            - DEPOTPILOT_REPOSITORY_PATH=D:/Softpaqs

        Args:
            config: Base configuration

        Returns:
            Configuration with environment overrides applied
        """
        if port := os.getenv("DEPOTPILOT_SERVER_PORT"):
            config.server.port = int(port)
        if host := os.getenv("DEPOTPILOT_SERVER_HOST"):
            config.server.host = host

        if repo_path := os.getenv("DEPOTPILOT_REPOSITORY_PATH"):
            config.repository.default_path = Path(repo_path).expanduser()

        if powershell := os.getenv("DEPOTPILOT_POWERSHELL"):
            config.remote.powershell = powershell

        if level := os.getenv("DEPOTPILOT_LOG_LEVEL"):
            if level.upper() in ("INFO", "DEBUG", "TRACE"):
                config.advanced.log_level = level.upper()  # type: ignore

        if data_dir := os.getenv("DEPOTPILOT_DATA_DIR"):
            config.paths.data_dir = Path(data_dir).expanduser()
            config.paths.logs_dir = None
            config.paths.model_post_init(None)

        return config

    def get_config(self) -> AppConfig:
        """Get configuration (singleton pattern)."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Reload configuration from file."""
        self._config = self.load()
        return self._config


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config() -> AppConfig:
    """Get global application configuration.

    Returns:
        Application configuration
    """
    return _config_manager.get_config()


def reload_config() -> AppConfig:
    """Reload configuration from file.

    Returns:
        Reloaded configuration
    """
    return _config_manager.reload()


def save_config(config: AppConfig) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save
    """
    _config_manager.save(config)
