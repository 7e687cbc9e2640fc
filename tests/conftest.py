"""
Rent Reclaimer Test Configuration
=================================
Shared fixtures and pytest markers for the test suite.
"""

import pytest
import os
import sys
import tempfile

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep log files and console noise out of the working tree
os.environ.setdefault("RECLAIMER_LOG_DIR", tempfile.mkdtemp(prefix="reclaimer-logs-"))
os.environ["SILENT_MODE"] = "true"


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

NOW_MS = 1_700_000_000_000


@pytest.fixture
def now_ms():
    """Fixed wall clock (ms) for deterministic cycles."""
    return NOW_MS


@pytest.fixture
def operator():
    """A throwaway operator keypair."""
    from solders.keypair import Keypair
    return Keypair()


@pytest.fixture
def reclaim_config():
    """Live-mode config with no backoff and alerts off."""
    from reclaimer.modules.reclaim.config import ReclaimConfig
    return ReclaimConfig(dry_run=False, retry_backoff_s=0.0, tg_alert=False)


@pytest.fixture
def new_address():
    """Factory for fresh, valid account addresses."""
    from solders.pubkey import Pubkey

    def _make() -> str:
        return str(Pubkey.new_unique())
    return _make


@pytest.fixture
def mock_rpc():
    from tests.mocks import MockRpcClient
    return MockRpcClient()
