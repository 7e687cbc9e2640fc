"""
Transaction Submitter Unit Tests
================================
Retry bound, error classification and the already-closed race.
"""

import pytest


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def submitter(mock_rpc, sleeps):
    from reclaimer.modules.reclaim.submitter import TransactionSubmitter
    return TransactionSubmitter(mock_rpc, backoff_s=1.0, sleep=sleeps.append)


def _expired():
    from solana.rpc.core import TransactionExpiredBlockheightExceededError
    return TransactionExpiredBlockheightExceededError("block height exceeded")


class TestCloseInstruction:

    def test_instruction_shape(self, submitter, operator):
        """Close pays rent to the operator and is authorized by the operator."""
        from solders.pubkey import Pubkey
        from reclaimer.modules.reclaim.config import TOKEN_PROGRAM_ID

        account = Pubkey.new_unique()
        ix = submitter.build_close_instruction(account, operator.pubkey())

        assert ix.program_id == TOKEN_PROGRAM_ID
        assert [m.pubkey for m in ix.accounts] == [account, operator.pubkey(), operator.pubkey()]
        assert ix.accounts[0].is_writable
        assert ix.accounts[2].is_signer


class TestSubmitClose:

    def test_success_first_attempt(self, submitter, mock_rpc, operator, new_address, sleeps):
        signature = submitter.submit_close(new_address(), operator, max_retries=3)

        assert signature == "MockSig1"
        assert mock_rpc.blockhash_calls == 1
        assert sleeps == []

    def test_signed_transaction_is_sent(self, submitter, mock_rpc, operator, new_address):
        from solders.transaction import VersionedTransaction

        submitter.submit_close(new_address(), operator)

        tx = VersionedTransaction.from_bytes(mock_rpc.sent[0])
        assert tx.message.account_keys[0] == operator.pubkey()
        assert len(tx.signatures) == 1

    def test_expiry_then_success_uses_fresh_blockhash(self, submitter, mock_rpc, operator, new_address, sleeps):
        mock_rpc.confirm_results = [_expired(), None]

        assert submitter.submit_close(new_address(), operator, max_retries=3) == "MockSig2"
        assert mock_rpc.blockhash_calls == 2
        assert sleeps == [1.0]

    def test_attempts_bounded_by_max_retries(self, submitter, mock_rpc, operator, new_address, sleeps):
        """Exactly max_retries attempts, no sleep after the last one."""
        from solana.rpc.core import TransactionExpiredBlockheightExceededError

        mock_rpc.confirm_results = [_expired() for _ in range(5)]

        with pytest.raises(TransactionExpiredBlockheightExceededError):
            submitter.submit_close(new_address(), operator, max_retries=3)

        assert mock_rpc.blockhash_calls == 3
        assert len(mock_rpc.sent) == 3
        assert sleeps == [1.0, 1.0]

    def test_execution_error_not_retried(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.modules.reclaim.errors import TransactionExecutionError

        mock_rpc.confirm_results = ["InstructionError(0, Custom(1))"]

        with pytest.raises(TransactionExecutionError) as exc:
            submitter.submit_close(new_address(), operator, max_retries=3)

        assert exc.value.signature == "MockSig1"
        assert mock_rpc.blockhash_calls == 1

    def test_preflight_rejection_propagates(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.modules.reclaim.errors import SendTransactionError

        mock_rpc.send_errors = [SendTransactionError("simulation failed")]

        with pytest.raises(SendTransactionError):
            submitter.submit_close(new_address(), operator, max_retries=3)
        assert mock_rpc.blockhash_calls == 1

    def test_zero_retries_rejected(self, submitter, operator, new_address):
        with pytest.raises(ValueError):
            submitter.submit_close(new_address(), operator, max_retries=0)


class TestInvalidAccountData:

    def test_log_scan(self):
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.modules.reclaim.submitter import is_invalid_account_data

        error = SendTransactionError(
            "Transaction simulation failed",
            logs=["Program Tokenkeg... failed: invalid account data for instruction"],
        )
        assert is_invalid_account_data(error)

    def test_message_scan(self):
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.modules.reclaim.submitter import is_invalid_account_data

        assert is_invalid_account_data(SendTransactionError("Error: InvalidAccountData"))

    def test_structured_error(self):
        from solders.transaction_status import InstructionErrorFieldless, TransactionErrorInstructionError
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.modules.reclaim.submitter import is_invalid_account_data

        error = SendTransactionError(
            "simulation failed",
            error=TransactionErrorInstructionError(0, InstructionErrorFieldless.InvalidAccountData),
        )
        assert is_invalid_account_data(error)

    def test_structured_error_wins_over_text(self):
        from solders.transaction_status import InstructionErrorFieldless, TransactionErrorInstructionError
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.modules.reclaim.submitter import is_invalid_account_data

        error = SendTransactionError(
            "simulation failed",
            logs=["invalid account data"],
            error=TransactionErrorInstructionError(0, InstructionErrorFieldless.InsufficientFunds),
        )
        assert not is_invalid_account_data(error)

    def test_unrelated_error(self):
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.modules.reclaim.submitter import is_invalid_account_data

        assert not is_invalid_account_data(SendTransactionError("insufficient funds for fee"))


class TestAttemptClose:

    def test_submitted(self, submitter, operator, new_address):
        from reclaimer.shared.execution.close_result import CloseStatus

        result = submitter.attempt_close(new_address(), operator)
        assert result.status is CloseStatus.SUBMITTED
        assert result.signature == "MockSig1"
        assert result.reclaimed

    def test_race_account_gone(self, submitter, mock_rpc, operator, new_address):
        """InvalidAccountData and the account no longer exists: closed by someone else."""
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.shared.execution.close_result import CloseStatus

        address = new_address()
        mock_rpc.send_errors = [SendTransactionError("failed", logs=["InvalidAccountData"])]

        result = submitter.attempt_close(address, operator)
        assert result.status is CloseStatus.ALREADY_CLOSED
        assert result.reclaimed
        assert mock_rpc.account_info_calls == [address]

    def test_invalid_data_but_account_exists(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.shared.execution.close_result import CloseStatus, ErrorCode
        from tests.mocks import token_account

        address = new_address()
        mock_rpc.set_account(address, token_account(operator.pubkey()))
        mock_rpc.send_errors = [SendTransactionError("failed", logs=["InvalidAccountData"])]

        result = submitter.attempt_close(address, operator)
        assert result.status is CloseStatus.FAILED
        assert result.error_code is ErrorCode.SIMULATION_FAILED

    def test_other_preflight_error_skips_reread(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.modules.reclaim.errors import SendTransactionError
        from reclaimer.shared.execution.close_result import CloseStatus

        mock_rpc.send_errors = [SendTransactionError("insufficient funds")]

        result = submitter.attempt_close(new_address(), operator)
        assert result.status is CloseStatus.FAILED
        assert mock_rpc.account_info_calls == []

    def test_execution_error(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.shared.execution.close_result import CloseStatus, ErrorCode

        mock_rpc.confirm_results = ["Custom(1)"]

        result = submitter.attempt_close(new_address(), operator)
        assert result.status is CloseStatus.FAILED
        assert result.error_code is ErrorCode.EXECUTION_FAILED

    def test_retries_exhausted(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.shared.execution.close_result import ErrorCode

        mock_rpc.confirm_results = [_expired(), _expired()]

        result = submitter.attempt_close(new_address(), operator, max_retries=2)
        assert result.error_code is ErrorCode.BLOCKHASH_EXPIRED
        assert not result.reclaimed

    def test_transport_error(self, submitter, mock_rpc, operator, new_address):
        from reclaimer.shared.execution.close_result import ErrorCode

        mock_rpc.send_errors = [ConnectionError("connection reset")]

        result = submitter.attempt_close(new_address(), operator)
        assert result.error_code is ErrorCode.RPC_ERROR
        assert "connection reset" in result.reason
