"""Configuration management for notion-wiki-sync."""

import copy
import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


def extract_database_id(input_str: str) -> str:
    """Extract a database ID from a Notion URL, or return the input unchanged."""
    if 'notion.so' in input_str:
        match = re.search(
            r'([a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}|[a-f0-9]{32})',
            input_str
        )
        if match:
            return match.group(1)
    return input_str


class Config:
    """Configuration manager with support for YAML files and environment variables."""

    DEFAULT_CONFIG = {
        "notion": {
            "token": "",
            "api_version": "2022-06-28",
        },
        "sync": {
            "markdown_root": ".",
            "database_id": "",
            "base_url": "",
        },
        "api": {
            "max_blocks_per_request": 100,
            "retry_attempts": 3,
            "retry_delay": 1.0,
            "rate_limit_delay": 0.35,
            "timeout": 30,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": "",
        },
    }

    # Environment variable -> (section, key, converter)
    ENV_OVERRIDES = {
        "NOTION_TOKEN": ("notion", "token", str),
        "NOTION_API_VERSION": ("notion", "api_version", str),
        "MD_ROOT": ("sync", "markdown_root", str),
        "NOTION_ROOT": ("sync", "database_id", str),
        "GITHUB_URL": ("sync", "base_url", str),
        "NOTION_MAX_BLOCKS": ("api", "max_blocks_per_request", int),
        "NOTION_RETRY_ATTEMPTS": ("api", "retry_attempts", int),
        "LOG_LEVEL": ("logging", "level", str),
    }

    def __init__(self, config_file: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML config file. If None, looks for config.yaml
                        in current directory, then ~/.notion-wiki-sync/config.yaml
            overrides: Nested dict applied last (used by the command line)
        """
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self._load_yaml(config_file)
        else:
            for path in [
                Path.cwd() / "config.yaml",
                Path.home() / ".notion-wiki-sync" / "config.yaml",
            ]:
                if path.exists():
                    self._load_yaml(path)
                    break

        self._load_from_env()

        if overrides:
            self._deep_update(self.config, overrides)

        self._validate()

    def _load_yaml(self, config_file: Path) -> None:
        """Load configuration from YAML file."""
        if not config_file.exists():
            return

        with open(config_file, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f)

        if yaml_config:
            self._deep_update(self.config, yaml_config)

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        for env_name, (section, key, convert) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                self.config[section][key] = convert(value)

    def _deep_update(self, base: Dict, updates: Dict) -> None:
        """Recursively update nested dictionaries."""
        for key, value in updates.items():
            if (
                key in base
                and isinstance(base[key], dict)
                and isinstance(value, dict)
            ):
                self._deep_update(base[key], value)
            else:
                base[key] = value

    def _validate(self) -> None:
        """Validate that required configuration is present."""
        if not self.config["notion"]["token"]:
            raise ValueError(
                "Notion token is required. Set NOTION_TOKEN environment variable "
                "or add 'notion.token' to config.yaml"
            )
        if not self.config["sync"]["database_id"]:
            raise ValueError(
                "Target database is required. Set NOTION_ROOT environment variable "
                "or add 'sync.database_id' to config.yaml"
            )
        if not self.config["sync"]["base_url"]:
            raise ValueError(
                "Base URL is required. Set GITHUB_URL environment variable "
                "or add 'sync.base_url' to config.yaml"
            )
        if self.config["api"]["max_blocks_per_request"] < 1:
            raise ValueError("api.max_blocks_per_request must be at least 1")

    @property
    def notion_token(self) -> str:
        """Get Notion API token."""
        return self.config["notion"]["token"]

    @property
    def api_version(self) -> str:
        """Get Notion API version."""
        return self.config["notion"]["api_version"]

    @property
    def markdown_root(self) -> str:
        """Get the directory scanned for markdown documents."""
        return str(self.config["sync"]["markdown_root"])

    @property
    def database_id(self) -> str:
        """Get the ID of the database pages are synced into."""
        return extract_database_id(str(self.config["sync"]["database_id"]))

    @property
    def base_url(self) -> str:
        """Get the URL prefix used to link pages back to their source files."""
        return str(self.config["sync"]["base_url"]).rstrip("/")

    @property
    def max_blocks_per_request(self) -> int:
        """Get maximum blocks per request."""
        return self.config["api"]["max_blocks_per_request"]

    @property
    def retry_attempts(self) -> int:
        """Get number of retry attempts."""
        return self.config["api"]["retry_attempts"]

    @property
    def retry_delay(self) -> float:
        """Get retry delay in seconds."""
        return self.config["api"]["retry_delay"]

    @property
    def rate_limit_delay(self) -> float:
        """Get rate limit delay in seconds."""
        return self.config["api"]["rate_limit_delay"]

    @property
    def timeout(self) -> float:
        """Get socket timeout for API requests in seconds."""
        return self.config["api"]["timeout"]

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return self.config["logging"]["level"]

    @property
    def log_format(self) -> str:
        """Get logging format."""
        return self.config["logging"]["format"]

    @property
    def log_file(self) -> str:
        """Get log file path."""
        return self.config["logging"]["file"]


def load_config(config_file: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> Config:
    """
    Load configuration from file or environment.

    Args:
        config_file: Optional path to YAML config file
        overrides: Optional nested dict applied after file and environment

    Returns:
        Config object

    Raises:
        ValueError: If required configuration is missing
    """
    return Config(config_file, overrides)
