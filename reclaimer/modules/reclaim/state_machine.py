"""
Reclaim State Machine
=====================
Turns one account's classification into its next status.

    CLOSED                              -> RECLAIMED (no signature)
    SYSTEM_WALLET                       -> MARKED_FOR_DEATH
    TOKEN_ACCOUNT, balance > 0          -> PROBATION
    TOKEN_ACCOUNT, empty, foreign owner -> unchanged
    TOKEN_ACCOUNT, empty, dry run       -> unchanged
    TOKEN_ACCOUNT, empty, live          -> close; RECLAIMED on success
    OTHER                               -> unchanged

Anything raised while handling one account marks that account ERROR and
the cycle moves on. A status write that fails after a confirmed close is
retried, never turned into ERROR.
"""

from typing import Callable

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from reclaimer.modules.reclaim.classifier import (
    AccountKind,
    classify,
    token_balance,
    token_owner,
)
from reclaimer.modules.reclaim.config import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID, ReclaimConfig
from reclaimer.modules.reclaim.summary import AccountOutcome, OutcomeKind
from reclaimer.shared.execution.close_result import CloseStatus
from reclaimer.shared.models.account import TrackedAccount
from reclaimer.shared.system.database.repositories.account_repo import now_ms
from reclaimer.shared.system.logging import Logger


class ReclaimStateMachine:
    """
    Usage:
        machine = ReclaimStateMachine(account_repo, rpc, submitter, config)
        outcome = machine.process(account, operator_keypair)
    """

    # Status write after a confirmed close
    RECLAIM_WRITE_ATTEMPTS = 3

    def __init__(
        self,
        store,
        rpc,
        submitter,
        config: ReclaimConfig,
        clock: Callable[[], int] = now_ms,
        token_program_id: Pubkey = TOKEN_PROGRAM_ID,
        system_program_id: Pubkey = SYSTEM_PROGRAM_ID,
    ):
        self.store = store
        self.rpc = rpc
        self.submitter = submitter
        self.config = config
        self.clock = clock
        self.token_program_id = token_program_id
        self.system_program_id = system_program_id

    def process(self, account: TrackedAccount, operator_keypair: Keypair) -> AccountOutcome:
        """Inspect one account, commit its transition, report the outcome."""
        try:
            return self._inspect(account, operator_keypair)
        except Exception as e:
            error_text = str(e) or type(e).__name__
            Logger.error(f"[RECLAIM] {account.short} failed: {error_text}")
            try:
                self.store.mark_error(account.address, error_text, at_ms=self.clock())
            except Exception as write_error:
                Logger.error(f"[DB] Could not record error for {account.short}: {write_error}")
            return AccountOutcome(account.address, OutcomeKind.ERROR, f"Error ({error_text})")

    def _inspect(self, account: TrackedAccount, operator_keypair: Keypair) -> AccountOutcome:
        info = self.rpc.get_account_info(account.address)
        classification = classify(info, self.token_program_id, self.system_program_id)
        Logger.info(f"[RECLAIM] Inspecting {account.short} ({classification.label})")

        if classification.kind is AccountKind.CLOSED:
            self.store.mark_reclaimed(account.address, at_ms=self.clock())
            return AccountOutcome(account.address, OutcomeKind.RECLAIMED, "Already Closed")

        if classification.kind is AccountKind.SYSTEM_WALLET:
            self.store.mark_for_death(account.address, info.lamports, at_ms=self.clock())
            return AccountOutcome(account.address, OutcomeKind.FLAGGED, "System Wallet flagged")

        if classification.kind is AccountKind.TOKEN_ACCOUNT:
            return self._handle_token_account(account, info, operator_keypair)

        return AccountOutcome(account.address, OutcomeKind.SKIPPED, f"Skipped ({classification.label})")

    def _handle_token_account(self, account: TrackedAccount, info, operator_keypair: Keypair) -> AccountOutcome:
        if token_balance(info.data) > 0:
            self.store.mark_probation(account.address, info.lamports, at_ms=self.clock())
            return AccountOutcome(account.address, OutcomeKind.PROBATION, "Probation (Funded)")

        if token_owner(info.data) != operator_keypair.pubkey():
            return AccountOutcome(account.address, OutcomeKind.NOT_OPERATOR_OWNED, "Not operator-owned")

        if self.config.dry_run:
            return AccountOutcome(account.address, OutcomeKind.DRY_RUN, "Dry Run (Skipped)")

        result = self.submitter.attempt_close(account.address, operator_keypair, self.config.max_retries)

        if result.status is CloseStatus.SUBMITTED:
            message = f"Reclaimed ({result.signature})"
            if not self._commit_reclaimed(account, result.signature, info.lamports):
                message += ", status write pending"
            return AccountOutcome(
                account.address,
                OutcomeKind.RECLAIMED,
                message,
                recovered_lamports=info.lamports,
                signature=result.signature,
            )

        if result.status is CloseStatus.ALREADY_CLOSED:
            self.store.mark_reclaimed(account.address, balance_lamports=info.lamports, at_ms=self.clock())
            return AccountOutcome(
                account.address,
                OutcomeKind.RECLAIMED,
                "Reclaimed (closed concurrently)",
                recovered_lamports=info.lamports,
            )

        return AccountOutcome(account.address, OutcomeKind.FAILED, f"Close failed ({result.reason})")

    def _commit_reclaimed(self, account: TrackedAccount, signature: str, lamports: int) -> bool:
        """
        Record a confirmed close. The lamports are already back with the
        operator, so a failing write never turns this account into ERROR.

        Returns:
            False if every attempt failed; the row is left as it was and the
            next cycle reads the account as closed.
        """
        for attempt in range(1, self.RECLAIM_WRITE_ATTEMPTS + 1):
            try:
                self.store.mark_reclaimed(
                    account.address,
                    signature=signature,
                    balance_lamports=lamports,
                    at_ms=self.clock(),
                )
                return True
            except Exception as e:
                Logger.warning(
                    f"[DB] Reclaim write for {account.short} failed "
                    f"(attempt {attempt}/{self.RECLAIM_WRITE_ATTEMPTS}): {e}"
                )
        Logger.error(f"[RECLAIM] {account.short} closed on-chain as {signature} but its status was not saved")
        return False
