"""
Runtime Configuration Unit Tests
Tests for pools_core/config/runtime.py
"""
import logging

import pytest

from pools_core.config import (
    HDConfig,
    RuntimeConfig,
    TreeConfig,
    get_default_config,
    set_default_config,
    setup_logging,
)
from pools_core.crypto import ALLOWED
from pools_core.hd import HDSecretGenerator
from pools_core.merkle import MerkleTree
from fixtures.common import VALID_MNEMONIC


_ENV_VARS = [
    "POOLS_TREE_LEVELS",
    "POOLS_ZERO_LABEL",
    "POOLS_HD_NUM_KEYS",
    "POOLS_HD_MAX_KEYS",
    "POOLS_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestRuntimeConfig:
    """Tests for RuntimeConfig loading."""

    def test_defaults(self):
        config = RuntimeConfig()

        assert config.tree == TreeConfig(levels=20, zero_label="empty")
        assert config.hd == HDConfig(num_keys=10, max_keys=1024)
        assert config.log_level == "WARNING"

    def test_from_env(self, clean_env):
        clean_env.setenv("POOLS_TREE_LEVELS", "8")
        clean_env.setenv("POOLS_HD_MAX_KEYS", "16")
        clean_env.setenv("POOLS_LOG_LEVEL", "DEBUG")

        config = RuntimeConfig.from_env()

        assert config.tree.levels == 8
        assert config.tree.zero_label == "empty"
        assert config.hd.max_keys == 16
        assert config.hd.num_keys == 10
        assert config.log_level == "DEBUG"

    def test_from_env_without_overrides(self, clean_env):
        assert RuntimeConfig.from_env().to_dict() == RuntimeConfig().to_dict()

    def test_from_dict_partial(self):
        config = RuntimeConfig.from_dict({"tree": {"levels": 5}})

        assert config.tree.levels == 5
        assert config.hd.num_keys == 10

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "pools.yaml"
        path.write_text("tree:\n  levels: 6\n  zero_label: allowed\nhd:\n  num_keys: 2\n")

        config = RuntimeConfig.from_yaml(path)

        assert config.tree.levels == 6
        assert config.tree.zero_label == "allowed"
        assert config.hd.num_keys == 2

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RuntimeConfig.from_yaml(tmp_path / "missing.yaml")

    def test_with_env_overrides(self, clean_env):
        base = RuntimeConfig.from_dict({"tree": {"levels": 5}})
        clean_env.setenv("POOLS_ZERO_LABEL", "blocked")

        config = base.with_env_overrides()

        assert config.tree.levels == 5
        assert config.tree.zero_label == "blocked"
        assert base.tree.zero_label == "empty"

    def test_to_dict_round_trip(self):
        config = RuntimeConfig.from_dict({"tree": {"levels": 7}, "hd": {"max_keys": 32}, "log_level": "INFO"})

        assert RuntimeConfig.from_dict(config.to_dict()) == config


class TestDefaultConfig:
    """The default config drives constructor defaults."""

    def test_set_and_get(self):
        config = RuntimeConfig.from_dict({"tree": {"levels": 3}})
        set_default_config(config)

        assert get_default_config() is config

    def test_tree_defaults_follow_config(self):
        set_default_config(RuntimeConfig.from_dict({"tree": {"levels": 3, "zero_label": "allowed"}}))

        tree = MerkleTree()

        assert tree.levels == 3
        assert tree.zero == ALLOWED

    def test_hd_defaults_follow_config(self):
        set_default_config(RuntimeConfig.from_dict({"hd": {"num_keys": 1, "max_keys": 2}}))

        generator = HDSecretGenerator(VALID_MNEMONIC)

        assert len(generator.nodes) == 1
        assert generator.max_keys == 2

    def test_lazy_load_from_env(self, clean_env):
        clean_env.setenv("POOLS_TREE_LEVELS", "4")
        set_default_config(None)

        assert get_default_config().tree.levels == 4


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_level_from_config(self, monkeypatch):
        captured = {}
        monkeypatch.setattr("logging.basicConfig", lambda **kwargs: captured.update(kwargs))
        set_default_config(RuntimeConfig(log_level="DEBUG"))

        setup_logging()

        assert captured["level"] == logging.DEBUG

    def test_explicit_level(self, monkeypatch):
        captured = {}
        monkeypatch.setattr("logging.basicConfig", lambda **kwargs: captured.update(kwargs))

        setup_logging("error")

        assert captured["level"] == logging.ERROR
        assert len(captured["handlers"]) == 1
