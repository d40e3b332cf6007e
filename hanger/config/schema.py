"""
Configuration schema using Pydantic for validation.

Single source of truth for all configuration parameters.
Validates on load, fails fast on invalid config.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, Dict, Any
from pathlib import Path
from enum import Enum

import pytz


# ============================================================================
# ENUMS
# ============================================================================

class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Locale(str, Enum):
    """Locales with a label table in hanger.state.labels."""
    KO = "ko"
    EN = "en"


# ============================================================================
# STORE CONFIGURATION
# ============================================================================

class StoreConfig(BaseModel):
    """
    Snapshot store settings.

    RULES:
    - snapshot_name is a bare file name, never a path
    - backup_count bounds the timestamped backups kept beside the snapshot
    """

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the snapshot and its backups"
    )

    snapshot_name: str = Field(
        default="store.json",
        min_length=1,
        description="Snapshot file name inside data_dir"
    )

    backup_count: int = Field(
        ge=0,
        le=50,
        default=5,
        description="Timestamped backups to keep (0 disables them)"
    )

    auto_backup: bool = Field(
        default=True,
        description="Copy the previous snapshot aside before each save"
    )

    @field_validator("snapshot_name")
    @classmethod
    def validate_snapshot_name(cls, v: str) -> str:
        v = v.strip()
        if "/" in v or "\\" in v:
            raise ValueError(f"snapshot_name must be a file name, got: {v}")
        return v

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_name

    model_config = ConfigDict(validate_assignment=True)


# ============================================================================
# ADMIN CONFIGURATION
# ============================================================================

class AdminConfig(BaseModel):
    """Default administrative account, created on first start."""

    handle: str = Field(default="admin", min_length=1)
    display_name: str = Field(default="관리자", min_length=1)
    verification_id: str = Field(
        default="000000-3000000",
        min_length=1,
        description="Placeholder verification identifier (not a real person)"
    )


# ============================================================================
# MARKETPLACE CONFIGURATION
# ============================================================================

class MarketplaceConfig(BaseModel):
    """Presentation settings consumed by rendering layers."""

    display_timezone: str = Field(
        default="Asia/Seoul",
        description="Timezone for rendering stored UTC timestamps"
    )

    locale: Locale = Field(
        default=Locale.KO,
        description="Label table used for statuses and notification types"
    )

    @field_validator("display_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_dir: Path = Field(
        default=Path("logs"),
        description="Base log directory"
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="File logging level"
    )

    console_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Console logging level"
    )

    json_logs: bool = Field(
        default=True,
        description="Use JSON formatting for log files"
    )

    max_bytes: int = Field(
        ge=100_000,
        le=100_000_000,
        default=10_000_000,
        description="Max bytes per log file"
    )

    backup_count: int = Field(
        ge=1,
        le=20,
        default=5,
        description="Number of rotated log files"
    )


# ============================================================================
# MASTER CONFIGURATION
# ============================================================================

class ConfigSchema(BaseModel):
    """
    Master configuration schema.

    Every block has defaults, so an empty YAML mapping is a valid config.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    marketplace: MarketplaceConfig = Field(default_factory=MarketplaceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @classmethod
    def from_yaml(cls, path: Path) -> "ConfigSchema":
        """Load config from YAML file."""
        import yaml
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConfigSchema":
        """Load config from dictionary."""
        return cls(**(data or {}))

    def to_yaml(self, path: Path) -> None:
        """Save config to YAML file."""
        import yaml
        data = self.model_dump(mode="json")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
