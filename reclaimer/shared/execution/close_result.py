"""
Close Result
============
Tagged outcome of a close-account attempt.

The state machine branches on ``status`` instead of catching
specific error messages:

    SUBMITTED       transaction confirmed, signature set
    ALREADY_CLOSED  account vanished while we were closing it
    FAILED          anything else, reason set
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CloseStatus(Enum):
    """Status codes for close attempts."""

    SUBMITTED = "SUBMITTED"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    FAILED = "FAILED"


class ErrorCode(Enum):
    """Standardized error codes for close failures."""

    BLOCKHASH_EXPIRED = "BLOCKHASH_EXPIRED"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    SIMULATION_FAILED = "SIMULATION_FAILED"
    RPC_ERROR = "RPC_ERROR"
    UNKNOWN = "UNKNOWN"


@dataclass
class CloseResult:
    """
    Result of ``attempt_close``.

    Usage:
        result = submitter.attempt_close(address, keypair, max_retries=3)
        if result.status is CloseStatus.SUBMITTED:
            log(result.signature)
    """

    status: CloseStatus
    signature: Optional[str] = None
    reason: str = ""
    error_code: Optional[ErrorCode] = None

    @classmethod
    def submitted(cls, signature: str) -> "CloseResult":
        return cls(status=CloseStatus.SUBMITTED, signature=signature)

    @classmethod
    def already_closed(cls, reason: str) -> "CloseResult":
        return cls(status=CloseStatus.ALREADY_CLOSED, reason=reason)

    @classmethod
    def failed(cls, reason: str, error_code: ErrorCode = ErrorCode.UNKNOWN) -> "CloseResult":
        return cls(status=CloseStatus.FAILED, reason=reason, error_code=error_code)

    @property
    def reclaimed(self) -> bool:
        return self.status in (CloseStatus.SUBMITTED, CloseStatus.ALREADY_CLOSED)
