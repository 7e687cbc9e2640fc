"""
Candidate Selector
==================
Picks the accounts due for inspection this cycle.
"""

from typing import List

from reclaimer.modules.reclaim.config import BATCH_SIZE, PROBATION_PERIOD_MS
from reclaimer.shared.models.account import AccountStatus, TrackedAccount


def is_due(account: TrackedAccount, now_ms: int, probation_period_ms: int = PROBATION_PERIOD_MS) -> bool:
    if account.status is AccountStatus.MONITORING:
        return True
    if account.status is AccountStatus.PROBATION:
        return account.last_checked is not None and account.last_checked < now_ms - probation_period_ms
    return False


def select_candidates(
    store,
    now_ms: int,
    probation_period_ms: int = PROBATION_PERIOD_MS,
    batch_size: int = BATCH_SIZE,
) -> List[TrackedAccount]:
    """
    MONITORING accounts plus PROBATION accounts whose cooldown elapsed,
    at most ``batch_size``, in store order.

    Store errors propagate: an unreachable store fails the cycle.
    """
    rows = store.select_candidates(now_ms - probation_period_ms, batch_size)
    # RECLAIMED must never come back even if the store predicate drifts
    return [a for a in rows if is_due(a, now_ms, probation_period_ms)][:batch_size]
