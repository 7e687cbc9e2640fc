"""
Transaction Submitter
=====================
Builds, signs and lands a single SPL Token CloseAccount transaction.

Protocol per attempt:
1. Fetch latest blockhash + last valid block height
2. Compile message (operator pays fees), sign with the operator key
3. Send with preflight, confirm at "confirmed"
4. Execution error in confirmation -> raise, never retried
5. Blockhash expired -> fixed backoff, restart from 1

This is the only place chain state is mutated. Callers must not run it
concurrently for the same account.
"""

import time
from typing import Callable, Optional

from solana.rpc.core import TransactionExpiredBlockheightExceededError
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction
from solders.transaction_status import InstructionErrorFieldless, TransactionErrorInstructionError
from spl.token.instructions import close_account
from spl.token.models import CloseAccountParams

from reclaimer.modules.reclaim.config import DEFAULT_MAX_RETRIES, RETRY_BACKOFF_S, TOKEN_PROGRAM_ID
from reclaimer.modules.reclaim.errors import SendTransactionError, TransactionExecutionError
from reclaimer.shared.execution.close_result import CloseResult, ErrorCode
from reclaimer.shared.system.logging import Logger


def is_invalid_account_data(error: SendTransactionError) -> bool:
    """
    True when a rejected close looks like the account was already gone.

    Checks the structured instruction error first. The log/message scan is
    the fallback for nodes that only return text.
    """
    structured = error.error
    if isinstance(structured, TransactionErrorInstructionError):
        return structured.err == InstructionErrorFieldless.InvalidAccountData

    haystack = " ".join(error.logs + [str(error)]).lower()
    return "invalidaccountdata" in haystack or "invalid account data" in haystack


class TransactionSubmitter:
    """
    Usage:
        submitter = TransactionSubmitter(rpc)
        sig = submitter.submit_close(address, operator_keypair, max_retries=3)
    """

    def __init__(
        self,
        rpc,
        backoff_s: float = RETRY_BACKOFF_S,
        token_program_id: Pubkey = TOKEN_PROGRAM_ID,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.rpc = rpc
        self.backoff_s = backoff_s
        self.token_program_id = token_program_id
        self._sleep = sleep

    def build_close_instruction(self, account: Pubkey, operator: Pubkey) -> Instruction:
        """CloseAccount: residual lamports to the operator, operator signs."""
        return close_account(
            CloseAccountParams(
                account=account,
                dest=operator,
                owner=operator,
                program_id=self.token_program_id,
                signers=[],
            )
        )

    def submit_close(
        self,
        account_address: str,
        operator_keypair: Keypair,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> str:
        """
        Close ``account_address`` and return the confirmed signature.

        Raises:
            SendTransactionError: preflight rejected the transaction
            TransactionExecutionError: confirmed with an execution error
            TransactionExpiredBlockheightExceededError: every attempt expired
        """
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")

        account = Pubkey.from_string(account_address)
        operator = operator_keypair.pubkey()
        ix = self.build_close_instruction(account, operator)

        last_error: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            blockhash, last_valid_block_height = self.rpc.get_latest_blockhash()
            msg = MessageV0.try_compile(
                payer=operator,
                instructions=[ix],
                address_lookup_table_accounts=[],
                recent_blockhash=blockhash,
            )
            tx = VersionedTransaction(msg, [operator_keypair])

            try:
                signature = self.rpc.send_raw_transaction(bytes(tx))
                Logger.info(f"[SUBMIT] Sent close for {account_address[:8]}... (attempt {attempt}/{max_retries})")
                exec_error = self.rpc.confirm_transaction(signature, blockhash, last_valid_block_height)
            except TransactionExpiredBlockheightExceededError as e:
                last_error = e
                Logger.warning(
                    f"[SUBMIT] Blockhash expired for {account_address[:8]}... "
                    f"(attempt {attempt}/{max_retries})"
                )
                if attempt < max_retries:
                    self._sleep(self.backoff_s)
                continue

            if exec_error is not None:
                raise TransactionExecutionError(str(signature), exec_error)

            Logger.success(f"[SUBMIT] Close confirmed: {signature}")
            return str(signature)

        raise last_error

    def attempt_close(
        self,
        account_address: str,
        operator_keypair: Keypair,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> CloseResult:
        """
        ``submit_close`` folded into a CloseResult.

        A preflight rejection for invalid account data triggers one re-read:
        if the account is gone, someone else's close landed first and the
        result is ALREADY_CLOSED. Errors from that re-read propagate.
        """
        try:
            return CloseResult.submitted(self.submit_close(account_address, operator_keypair, max_retries))
        except SendTransactionError as e:
            if is_invalid_account_data(e) and self.rpc.get_account_info(account_address) is None:
                Logger.info(f"[SUBMIT] {account_address[:8]}... already closed (race)")
                return CloseResult.already_closed(str(e))
            Logger.error(f"[SUBMIT] Close rejected for {account_address[:8]}...: {e}")
            return CloseResult.failed(str(e), ErrorCode.SIMULATION_FAILED)
        except TransactionExecutionError as e:
            Logger.error(f"[SUBMIT] Close failed on-chain for {account_address[:8]}...: {e}")
            return CloseResult.failed(str(e), ErrorCode.EXECUTION_FAILED)
        except TransactionExpiredBlockheightExceededError as e:
            Logger.error(f"[SUBMIT] Retries exhausted for {account_address[:8]}...: {e}")
            return CloseResult.failed(str(e), ErrorCode.BLOCKHASH_EXPIRED)
        except Exception as e:
            Logger.error(f"[SUBMIT] Close attempt errored for {account_address[:8]}...: {e}")
            return CloseResult.failed(str(e), ErrorCode.RPC_ERROR)
