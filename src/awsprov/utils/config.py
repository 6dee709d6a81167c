"""Configuration utilities for awsprov."""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".awsprov"
CONFIG_FILE_YAML = CONFIG_DIR / "config.yaml"
CONFIG_FILE_JSON = CONFIG_DIR / "config.json"  # Legacy support

# Default provider configuration
DEFAULT_PROVIDER_CONFIG = {
    "default_tags": {},
    "ignore_tags": {
        "keys": [],
        "key_prefixes": [],
    },
    "timeouts": {
        "propagation_seconds": 120,  # IAM role propagation window for create retries
        "threat_intel_set_seconds": 300,  # 5 minutes
        "threat_intel_set_poll_seconds": 3,
    },
}

# Default logging configuration
DEFAULT_LOGGING_CONFIG = {
    "level": "INFO",
    "format": "simple",
    "file_logging": False,
    "log_directory": "~/.awsprov/logs",
    "log_aws_requests": False,
}


class Config:
    """Manages awsprov configuration with unified YAML support."""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the configuration manager.

        Args:
            config_dir: Configuration directory, defaults to ~/.awsprov
        """
        self.config_data: Dict[str, Any] = {}
        self._config_loaded = False
        self._config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._config_file_yaml = self._config_dir / CONFIG_FILE_YAML.name
        self._config_file_json = self._config_dir / CONFIG_FILE_JSON.name

    def _ensure_config_loaded(self) -> None:
        """Ensure configuration is loaded from file."""
        if not self._config_loaded:
            self._load_config()
            self._config_loaded = True

    def reload_config(self) -> None:
        """Force reload configuration from file."""
        self._config_loaded = False
        self._ensure_config_loaded()

    def _load_config(self) -> None:
        """Load the configuration from file, with automatic migration from JSON to YAML."""
        if self._config_file_yaml.exists():
            self._load_yaml_config()
        elif self._config_file_json.exists():
            self._load_and_migrate_json_config()
        else:
            self.config_data = {}

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self._config_file_yaml, "r", encoding="utf-8") as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            console.print(
                f"[red]Error: Configuration file {self._config_file_yaml} is not valid YAML: {e}[/red]"
            )
            self.config_data = {}

        if not isinstance(self.config_data, dict):
            console.print(
                f"[red]Error: Configuration file {self._config_file_yaml} must contain a mapping[/red]"
            )
            self.config_data = {}

    def _load_and_migrate_json_config(self) -> None:
        """Load JSON config and migrate to YAML format."""
        try:
            with open(self._config_file_json, "r", encoding="utf-8") as f:
                self.config_data = json.load(f)
        except json.JSONDecodeError as e:
            console.print(
                f"[red]Error: Configuration file {self._config_file_json} is not valid JSON: {e}[/red]"
            )
            self.config_data = {}
            return

        console.print("[blue]Migrating configuration from JSON to YAML format...[/blue]")
        self.save_config()

        backup_file = self._config_file_json.with_suffix(".json.backup")
        self._config_file_json.rename(backup_file)
        console.print(
            f"[green]Configuration migrated to YAML format. JSON backup saved as {backup_file}[/green]"
        )

    def save_config(self) -> None:
        """Save the configuration to YAML file."""
        self._config_dir.mkdir(parents=True, exist_ok=True)
        with open(self._config_file_yaml, "w", encoding="utf-8") as f:
            yaml.dump(self.config_data, f, default_flow_style=False, indent=2, sort_keys=False)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value with dot notation support.

        Args:
            key: Configuration key (supports dot notation like "timeouts.propagation_seconds")
            default: Default value if key doesn't exist

        Returns:
            Configuration value
        """
        self._ensure_config_loaded()

        value: Any = self.config_data
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value with dot notation support and save it.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self._ensure_config_loaded()

        keys = key.split(".")
        section = self.config_data
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

        self.save_config()

    def _deep_merge(self, dict1: Dict[str, Any], dict2: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries, values from ``dict2`` winning.

        Args:
            dict1: Base dictionary
            dict2: Dictionary to merge

        Returns:
            Merged dictionary
        """
        result = copy.deepcopy(dict1)
        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get_provider_config(self) -> Dict[str, Any]:
        """
        Get provider configuration (default tags, ignored tags, timeouts) with defaults.

        Returns:
            Provider configuration dictionary
        """
        self._ensure_config_loaded()
        user_config = {
            key: self.config_data[key] for key in DEFAULT_PROVIDER_CONFIG if key in self.config_data
        }
        return self._deep_merge(DEFAULT_PROVIDER_CONFIG, user_config)

    def get_logging_config(self) -> Dict[str, Any]:
        """
        Get logging configuration with defaults.

        Returns:
            Logging configuration dictionary
        """
        self._ensure_config_loaded()
        return self._deep_merge(DEFAULT_LOGGING_CONFIG, self.config_data.get("logging") or {})

    def get_state_file(self) -> str:
        return str(Path(self.get("state_file", str(self._config_dir / "state.json"))).expanduser())

    def get_all(self) -> Dict[str, Any]:
        self._ensure_config_loaded()
        return copy.deepcopy(self.config_data)
