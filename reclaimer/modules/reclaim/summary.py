"""
Cycle Summary
=============
Per-account outcomes of one reclaim cycle and the totals derived from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

LAMPORTS_PER_SOL = 1_000_000_000


class OutcomeKind(Enum):
    RECLAIMED = "RECLAIMED"
    PROBATION = "PROBATION"
    FLAGGED = "FLAGGED"
    NOT_OPERATOR_OWNED = "NOT_OPERATOR_OWNED"
    DRY_RUN = "DRY_RUN"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
    ERROR = "ERROR"


SKIP_KINDS = (OutcomeKind.NOT_OPERATOR_OWNED, OutcomeKind.DRY_RUN, OutcomeKind.SKIPPED)
ERROR_KINDS = (OutcomeKind.FAILED, OutcomeKind.ERROR)


@dataclass
class AccountOutcome:
    address: str
    kind: OutcomeKind
    message: str
    recovered_lamports: int = 0
    signature: Optional[str] = None

    @property
    def line(self) -> str:
        return f"{self.address}: {self.message}"


@dataclass
class CycleSummary:
    """
    Ephemeral; handed to the notifier and dropped.

    Counts are computed from ``outcomes`` so every processed account lands
    in exactly one bucket.
    """
    dry_run: bool = False
    outcomes: List[AccountOutcome] = field(default_factory=list)

    def record(self, outcome: AccountOutcome) -> None:
        self.outcomes.append(outcome)

    def _count(self, *kinds: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind in kinds)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def reclaimed(self) -> int:
        return self._count(OutcomeKind.RECLAIMED)

    @property
    def probation(self) -> int:
        return self._count(OutcomeKind.PROBATION)

    @property
    def flagged(self) -> int:
        return self._count(OutcomeKind.FLAGGED)

    @property
    def skipped(self) -> int:
        return self._count(*SKIP_KINDS)

    @property
    def errors(self) -> int:
        return self._count(*ERROR_KINDS)

    @property
    def recovered_lamports(self) -> int:
        return sum(o.recovered_lamports for o in self.outcomes)

    @property
    def recovered_sol(self) -> float:
        return self.recovered_lamports / LAMPORTS_PER_SOL

    @property
    def logs(self) -> List[str]:
        return [o.line for o in self.outcomes]

    def to_message(self) -> str:
        """Markdown summary for chat notifiers."""
        return (
            "🧹 *Kora Rent Reclaim Summary*\n"
            f"Processed: {self.processed}\n"
            f"Reclaimed: {self.reclaimed}\n"
            f"Probation: {self.probation}\n"
            f"Flagged: {self.flagged}\n"
            f"Errors: {self.errors}\n"
            f"Recovered: {self.recovered_sol:.4f} SOL\n"
            f"Mode: {'DRY RUN' if self.dry_run else 'LIVE'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'processed': self.processed,
            'reclaimed': self.reclaimed,
            'probation': self.probation,
            'flagged': self.flagged,
            'skipped': self.skipped,
            'errors': self.errors,
            'recovered_lamports': self.recovered_lamports,
            'dry_run': self.dry_run,
            'logs': self.logs,
        }
