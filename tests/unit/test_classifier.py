"""
Account Classifier Unit Tests
=============================
Kind detection and token account record decoding.
"""

import pytest


class TestClassify:
    """classify() over the four account kinds."""

    def test_missing_account_is_closed(self):
        from reclaimer.modules.reclaim.classifier import AccountKind, classify

        assert classify(None).kind is AccountKind.CLOSED

    def test_system_owned_without_data_is_wallet(self):
        from reclaimer.modules.reclaim.classifier import AccountKind, classify
        from tests.mocks import system_wallet

        assert classify(system_wallet()).kind is AccountKind.SYSTEM_WALLET

    def test_system_owned_with_data_is_other(self):
        """A system-owned account with data is not a plain wallet."""
        from types import SimpleNamespace
        from reclaimer.modules.reclaim.classifier import AccountKind, classify
        from reclaimer.modules.reclaim.config import SYSTEM_PROGRAM_ID

        info = SimpleNamespace(owner=SYSTEM_PROGRAM_ID, data=b"\x00" * 8, lamports=1)
        assert classify(info).kind is AccountKind.OTHER

    def test_token_program_owner_is_token_account(self, operator):
        from reclaimer.modules.reclaim.classifier import AccountKind, classify
        from tests.mocks import token_account

        result = classify(token_account(operator.pubkey()))
        assert result.kind is AccountKind.TOKEN_ACCOUNT
        assert result.label == "TOKEN_ACCOUNT"

    def test_foreign_owner_label_names_program(self):
        from solders.pubkey import Pubkey
        from reclaimer.modules.reclaim.classifier import AccountKind, classify
        from tests.mocks import foreign_account

        program = Pubkey.new_unique()
        result = classify(foreign_account(program))
        assert result.kind is AccountKind.OTHER
        assert result.label == f"OTHER ({program})"

    def test_custom_token_program_id(self, operator):
        """An injected token program id replaces the default."""
        from types import SimpleNamespace
        from solders.pubkey import Pubkey
        from reclaimer.modules.reclaim.classifier import AccountKind, classify
        from tests.mocks import token_account_data

        program = Pubkey.new_unique()
        info = SimpleNamespace(owner=program, data=token_account_data(operator.pubkey()), lamports=1)
        assert classify(info, token_program_id=program).kind is AccountKind.TOKEN_ACCOUNT


class TestTokenRecord:
    """Fixed-offset decoding of the token account layout."""

    @pytest.mark.parametrize("amount", [0, 1, 2**64 - 1])
    def test_balance(self, operator, amount):
        from reclaimer.modules.reclaim.classifier import token_balance
        from tests.mocks import token_account_data

        assert token_balance(token_account_data(operator.pubkey(), amount)) == amount

    def test_owner(self, operator):
        from reclaimer.modules.reclaim.classifier import token_owner
        from tests.mocks import token_account_data

        assert token_owner(token_account_data(operator.pubkey())) == operator.pubkey()
