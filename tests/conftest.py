"""
Pytest configuration and shared fixtures for the pool primitive tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Pins the runtime configuration so environment variables cannot leak in
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_leaves = _common.make_leaves
make_bits = _common.make_bits
VALID_MNEMONIC = _common.VALID_MNEMONIC
OTHER_MNEMONIC = _common.OTHER_MNEMONIC

from pools_core.config import RuntimeConfig, set_default_config


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture(autouse=True)
def default_runtime_config():
    """Run every test against the built-in defaults."""
    config = RuntimeConfig()
    set_default_config(config)
    yield config
    set_default_config(None)


@pytest.fixture
def small_levels():
    """Depth used by most tree tests to keep hashing cheap."""
    return 4


@pytest.fixture
def random_bits():
    """Reproducible pseudo-random bit sequence crossing a word boundary."""
    return make_bits(300, seed=7)


@pytest.fixture(scope="session")
def generator():
    """HD generator over the standard test mnemonic (shared, read mostly)."""
    from pools_core.hd import HDSecretGenerator
    return HDSecretGenerator(VALID_MNEMONIC, num_keys=3, max_keys=64)


@pytest.fixture(scope="session")
def contract_code():
    from pools_core.hd import HDSecretGenerator
    return HDSecretGenerator.get_contract_code("0x" + "11" * 20, 1)
