"""
Reclaim Errors
==============
Exception types raised by the reclaim engine and its chain client.

Blockhash expiry is signalled with solana-py's own
``TransactionExpiredBlockheightExceededError``.
"""

from typing import Any, List, Optional


class ReclaimError(Exception):
    """Base class for reclaim engine failures."""


class SendTransactionError(ReclaimError):
    """
    The RPC node rejected a transaction during preflight simulation.

    Carries the simulation logs and, when the node reported one, the
    structured transaction error.
    """

    def __init__(self, message: str, logs: Optional[List[str]] = None, error: Any = None):
        super().__init__(message)
        self.logs = list(logs or [])
        self.error = error


class TransactionExecutionError(ReclaimError):
    """Confirmation reported an on-chain execution error."""

    def __init__(self, signature: str, error: Any):
        super().__init__(f"Transaction failed: {error}")
        self.signature = signature
        self.error = error


class OperatorKeyError(ReclaimError):
    """Operator keypair missing, malformed, or not matching the operator address."""


class CycleInProgressError(ReclaimError):
    """A reclaim cycle is already running on this runner."""
