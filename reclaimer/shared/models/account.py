"""
Tracked Account Model
=====================
One row per on-chain address under observation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AccountStatus(str, Enum):
    MONITORING = "MONITORING"
    PROBATION = "PROBATION"
    RECLAIMED = "RECLAIMED"
    ERROR = "ERROR"
    MARKED_FOR_DEATH = "MARKED_FOR_DEATH"


@dataclass
class TrackedAccount:
    address: str
    status: AccountStatus = AccountStatus.MONITORING
    balance_lamports: int = 0
    owner_program: Optional[str] = None
    last_checked: Optional[int] = None
    last_active_at: Optional[int] = None
    created_at: Optional[int] = None
    reclaimed_at: Optional[int] = None
    reclaim_tx_signature: Optional[str] = None
    error_log: Optional[str] = None
    # Reserved counters, not enforced by the engine
    retry_count: int = 0
    tx_count: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TrackedAccount":
        return cls(
            address=row["address"],
            status=AccountStatus(row["status"]),
            balance_lamports=row.get("balance_lamports") or 0,
            owner_program=row.get("owner_program"),
            last_checked=row.get("last_checked"),
            last_active_at=row.get("last_active_at"),
            created_at=row.get("created_at"),
            reclaimed_at=row.get("reclaimed_at"),
            reclaim_tx_signature=row.get("reclaim_tx_signature"),
            error_log=row.get("error_log"),
            retry_count=row.get("retry_count") or 0,
            tx_count=row.get("tx_count") or 0,
        )

    @property
    def short(self) -> str:
        return f"{self.address[:8]}..."
