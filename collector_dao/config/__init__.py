"""
Collector DAO Configuration

Loads config.toml at startup. Environment variables override TOML values.
"""

from .loader import (
    DAOConfig,
    GovernanceConfig,
    LoggingConfig,
    TokenConfig,
    load_config,
)

__all__ = [
    "DAOConfig",
    "GovernanceConfig",
    "LoggingConfig",
    "TokenConfig",
    "load_config",
]
