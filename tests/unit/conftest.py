"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP)
- Database (SQLite)
- File system (except tmp_path)
"""

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Use integration tests for network-dependent code."
        )

    monkeypatch.setattr("requests.post", block_network)
    monkeypatch.setattr("requests.get", block_network)


# ============================================================================
# RECLAIM ENGINE FIXTURES
# ============================================================================


@pytest.fixture
def memory_store():
    from tests.mocks import InMemoryAccountStore
    return InMemoryAccountStore()


@pytest.fixture
def monitoring_account(new_address, now_ms):
    """Factory for MONITORING accounts created at a given offset."""
    from reclaimer.shared.models.account import AccountStatus, TrackedAccount

    def _make(address=None, created_offset_ms=0, status=AccountStatus.MONITORING, last_checked=None):
        return TrackedAccount(
            address=address or new_address(),
            status=status,
            created_at=now_ms - 10_000_000 + created_offset_ms,
            last_checked=last_checked,
        )
    return _make
