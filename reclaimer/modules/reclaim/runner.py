"""
Reclaim Cycle Runner
====================
One cycle: select -> classify -> transition -> (close) -> summary.

Accounts are handled strictly one after another on the calling thread, so
at most one close transaction from the operator key is ever in flight. A
second ``run_cycle`` while one is running is refused.
"""

import threading
from typing import Any, Callable, Dict, Optional

from solders.keypair import Keypair

from reclaimer.modules.reclaim.config import ReclaimConfig
from reclaimer.modules.reclaim.errors import CycleInProgressError
from reclaimer.modules.reclaim.selector import select_candidates
from reclaimer.modules.reclaim.state_machine import ReclaimStateMachine
from reclaimer.modules.reclaim.submitter import TransactionSubmitter
from reclaimer.modules.reclaim.summary import CycleSummary
from reclaimer.shared.system.database.repositories.account_repo import now_ms
from reclaimer.shared.system.logging import Logger


class ReclaimCycleRunner:
    """
    Usage:
        runner = ReclaimCycleRunner(account_repo, rpc, config, notifier=notifier)
        summary = runner.run_cycle(operator_keypair)
    """

    def __init__(
        self,
        store,
        rpc,
        config: ReclaimConfig,
        submitter: Optional[TransactionSubmitter] = None,
        notifier=None,
        event_log=None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.rpc = rpc
        self.config = config
        self.submitter = submitter or TransactionSubmitter(rpc, backoff_s=config.retry_backoff_s)
        self.notifier = notifier
        self.event_log = event_log
        self.clock = clock
        self.state_machine = ReclaimStateMachine(store, rpc, self.submitter, config, clock=clock)
        self._lock = threading.Lock()

    def run_cycle(self, operator_keypair: Keypair, now_ms: Optional[int] = None) -> CycleSummary:
        """
        Run one bounded cycle.

        Per-account failures are folded into the summary. Only a failing
        candidate fetch propagates.
        """
        if not self._lock.acquire(blocking=False):
            raise CycleInProgressError("A reclaim cycle is already running")
        try:
            return self._run(operator_keypair, now_ms if now_ms is not None else self.clock())
        finally:
            self._lock.release()

    def _run(self, operator_keypair: Keypair, now: int) -> CycleSummary:
        Logger.section("Reclaim Cycle")
        self._event("INFO", "Reclaim Process Started", {"dry_run": self.config.dry_run})

        targets = select_candidates(
            self.store,
            now,
            probation_period_ms=self.config.probation_period_ms,
            batch_size=self.config.batch_size,
        )
        Logger.info(f"[SELECTOR] {len(targets)} candidates due")

        summary = CycleSummary(dry_run=self.config.dry_run)
        for account in targets:
            outcome = self.state_machine.process(account, operator_keypair)
            summary.record(outcome)
            Logger.info(f"[RECLAIM] {outcome.line}")

        Logger.success(
            f"[RECLAIM] Cycle complete: {summary.reclaimed} reclaimed, {summary.probation} probation, "
            f"{summary.errors} errors, {summary.recovered_sol:.4f} SOL recovered"
        )
        self._event("INFO", "Reclaim Process Finished", summary.to_dict())

        if summary.processed > 0:
            self._notify(summary)
        return summary

    def _notify(self, summary: CycleSummary) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(summary.to_message())
        except Exception as e:
            Logger.warning(f"[NOTIFY] Summary delivery failed: {e}")
            if self.event_log is not None:
                self.event_log.warn("Summary delivery failed", e)

    def _event(self, level: str, message: str, meta: Any = None) -> None:
        if self.event_log is not None:
            self.event_log.write(level, message, meta)


def run_scheduled(
    runner: ReclaimCycleRunner,
    sync_job,
    operator_keypair: Keypair,
    event_log=None,
) -> Optional[Dict[str, Any]]:
    """
    Scheduled tick: sync new accounts, then one reclaim cycle.

    Infrastructure failures are logged and recorded, not raised; the next
    tick is the retry.
    """
    try:
        sync_result = sync_job.sync(str(operator_keypair.pubkey()))
        summary = runner.run_cycle(operator_keypair)
    except Exception as e:
        Logger.error(f"[SCHEDULER] Scheduled run failed: {e}")
        if event_log is not None:
            event_log.error("Scheduled run failed", e)
        return None

    result = {"sync": sync_result, "reclaim": summary.to_dict()}
    if event_log is not None:
        event_log.info("Scheduled run complete", result)
    return result
