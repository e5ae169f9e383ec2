"""
Runtime Configuration

Central configuration for tree depth, key chain sizing and logging.
"""

from __future__ import annotations

import copy
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_LEVELS = 20
DEFAULT_ZERO_LABEL = "empty"
DEFAULT_NUM_KEYS = 10
DEFAULT_MAX_KEYS = 1024  # arbitrary


@dataclass
class TreeConfig:
    """Configuration for Merkle trees and access lists."""
    levels: int = DEFAULT_LEVELS
    zero_label: str = DEFAULT_ZERO_LABEL


@dataclass
class HDConfig:
    """Configuration for the hierarchical deterministic key chain."""
    num_keys: int = DEFAULT_NUM_KEYS
    max_keys: int = DEFAULT_MAX_KEYS


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the pool primitives.

    Can be loaded from:
    - Environment variables (a local .env file is honoured)
    - YAML file
    - Programmatic construction
    """
    tree: TreeConfig = field(default_factory=TreeConfig)
    hd: HDConfig = field(default_factory=HDConfig)
    log_level: str = "WARNING"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - POOLS_TREE_LEVELS: Merkle tree depth
        - POOLS_ZERO_LABEL: Label hashed into the default empty leaf
        - POOLS_HD_NUM_KEYS: Keys derived eagerly by a new generator
        - POOLS_HD_MAX_KEYS: Ceiling on derived keys
        - POOLS_LOG_LEVEL: Logging level name
        """
        overrides: dict[str, Any] = {}

        if os.getenv("POOLS_TREE_LEVELS"):
            overrides.setdefault("tree", {})["levels"] = int(os.getenv("POOLS_TREE_LEVELS"))
        if os.getenv("POOLS_ZERO_LABEL"):
            overrides.setdefault("tree", {})["zero_label"] = os.getenv("POOLS_ZERO_LABEL")

        if os.getenv("POOLS_HD_NUM_KEYS"):
            overrides.setdefault("hd", {})["num_keys"] = int(os.getenv("POOLS_HD_NUM_KEYS"))
        if os.getenv("POOLS_HD_MAX_KEYS"):
            overrides.setdefault("hd", {})["max_keys"] = int(os.getenv("POOLS_HD_MAX_KEYS"))

        if os.getenv("POOLS_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("POOLS_LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        tree_data = data.get("tree", {})
        hd_data = data.get("hd", {})

        tree = TreeConfig(**tree_data) if tree_data else TreeConfig()
        hd = HDConfig(**hd_data) if hd_data else HDConfig()

        return cls(
            tree=tree,
            hd=hd,
            log_level=data.get("log_level", "WARNING"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        if "tree" in overrides:
            for key, value in overrides["tree"].items():
                setattr(new_config.tree, key, value)

        if "hd" in overrides:
            for key, value in overrides["hd"].items():
                setattr(new_config.hd, key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "tree": {
                "levels": self.tree.levels,
                "zero_label": self.tree.zero_label,
            },
            "hd": {
                "num_keys": self.hd.num_keys,
                "max_keys": self.hd.max_keys,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Configure logging for applications embedding the package.

    The level defaults to the configured log_level.
    """
    if level is None:
        level = get_default_config().log_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
