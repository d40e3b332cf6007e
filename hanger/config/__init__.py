"""
Configuration system with Pydantic validation.

Single source of truth for all configuration parameters.
"""

from .schema import (
    ConfigSchema,
    StoreConfig,
    AdminConfig,
    MarketplaceConfig,
    LoggingConfig,
    LogLevel,
    Locale,
)

from .loader import (
    ConfigLoader,
    load_config,
)

__all__ = [
    "ConfigSchema",
    "StoreConfig",
    "AdminConfig",
    "MarketplaceConfig",
    "LoggingConfig",
    "LogLevel",
    "Locale",
    "ConfigLoader",
    "load_config",
]
