"""
Runtime Configuration Module

Provides configuration loading and management for the pool primitives.
"""

from .runtime import (
    DEFAULT_LEVELS,
    DEFAULT_MAX_KEYS,
    DEFAULT_NUM_KEYS,
    DEFAULT_ZERO_LABEL,
    HDConfig,
    RuntimeConfig,
    TreeConfig,
    get_default_config,
    set_default_config,
    setup_logging,
)

__all__ = [
    "DEFAULT_LEVELS",
    "DEFAULT_MAX_KEYS",
    "DEFAULT_NUM_KEYS",
    "DEFAULT_ZERO_LABEL",
    "HDConfig",
    "RuntimeConfig",
    "TreeConfig",
    "get_default_config",
    "set_default_config",
    "setup_logging",
]
