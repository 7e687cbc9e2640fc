"""
Rent Reclaimer Test Mocks
=========================
Reusable fakes for isolated testing.
"""

from tests.mocks.mock_rpc import MockRpcClient, system_wallet, token_account, token_account_data, foreign_account
from tests.mocks.mock_store import InMemoryAccountStore
from tests.mocks.mock_notifier import RecordingNotifier

__all__ = [
    "MockRpcClient",
    "InMemoryAccountStore",
    "RecordingNotifier",
    "system_wallet",
    "token_account",
    "token_account_data",
    "foreign_account",
]
