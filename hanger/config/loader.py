"""
Configuration loader with environment variable handling.

Loads configuration from:
1. config.yaml (main config)
2. .env.local (loaded into process env)
3. Environment variables (highest priority)
"""

import os
from pathlib import Path
from typing import Dict, Any
from dotenv import load_dotenv
import yaml


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Priority (highest to lowest):
    1. OS Environment variables
    2. .env.local file
    3. config.yaml
    """

    # Environment variable -> (block, key)
    ENV_OVERRIDES = {
        "HANGER_DATA_DIR": ("store", "data_dir"),
        "HANGER_SNAPSHOT_NAME": ("store", "snapshot_name"),
        "HANGER_LOG_DIR": ("logging", "log_dir"),
        "HANGER_LOG_LEVEL": ("logging", "log_level"),
        "HANGER_ADMIN_HANDLE": ("admin", "handle"),
        "HANGER_TIMEZONE": ("marketplace", "display_timezone"),
    }

    # Values that must never be logged
    SECRET_KEYS = {
        "verification_id",
    }

    def __init__(self, config_dir: Path = Path("config"), config_name: str = "config.yaml"):
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / config_name
        self.secrets_file = self.config_dir / ".env.local"

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources.

        A missing config.yaml is not an error: every block has defaults.

        Returns:
            Merged configuration dictionary

        Raises:
            ValueError: If config.yaml is not a mapping
        """
        config: Dict[str, Any] = {}

        if self.config_file.exists():
            with open(self.config_file, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
            if loaded is not None and not isinstance(loaded, dict):
                raise ValueError(f"Configuration must be a mapping: {self.config_file}")
            config = loaded or {}

        # Do NOT override already-set OS env vars.
        if self.secrets_file.exists():
            load_dotenv(self.secrets_file, override=False)

        for env_name, (block, key) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is None or not value.strip():
                continue
            section = config.setdefault(block, {})
            if section is None:
                section = config[block] = {}
            section[key] = value.strip()

        return config

    def load_and_validate(self):
        """
        Load and validate configuration.

        Returns:
            ConfigSchema instance
        """
        from .schema import ConfigSchema

        config_dict = self.load()

        try:
            return ConfigSchema(**config_dict)
        except Exception as e:
            error_msg = str(e)
            for block in config_dict.values():
                if not isinstance(block, dict):
                    continue
                for key in self.SECRET_KEYS:
                    secret = block.get(key)
                    if secret:
                        error_msg = error_msg.replace(str(secret), "[REDACTED]")
            raise ValueError(f"Configuration validation failed: {error_msg}") from e

    @staticmethod
    def scrub_secrets(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace secret values with [REDACTED] for logging.

        Returns:
            Copy with secrets redacted
        """
        import copy

        scrubbed = copy.deepcopy(config_dict)

        def _scrub_recursive(d: Dict[str, Any]) -> None:
            for key, value in d.items():
                if key.lower() in ConfigLoader.SECRET_KEYS:
                    d[key] = "[REDACTED]"
                elif isinstance(value, dict):
                    _scrub_recursive(value)

        _scrub_recursive(scrubbed)
        return scrubbed


def load_config(config_dir: Path = Path("config")):
    """
    Convenience function to load and validate configuration.

    Returns:
        Validated ConfigSchema instance
    """
    return ConfigLoader(config_dir).load_and_validate()
