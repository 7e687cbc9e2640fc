"""
Account Classifier
==================
Maps raw on-chain account info to the kind of account the engine acts on.

Token account layout (SPL Token, fixed):
    [0..32)   mint
    [32..64)  owner
    [64..72)  amount (u64 little-endian)
"""

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from solders.pubkey import Pubkey

from reclaimer.modules.reclaim.config import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID

TOKEN_OWNER_OFFSET = 32
TOKEN_AMOUNT_OFFSET = 64


class AccountKind(Enum):
    CLOSED = "CLOSED"
    SYSTEM_WALLET = "SYSTEM_WALLET"
    TOKEN_ACCOUNT = "TOKEN_ACCOUNT"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Classification:
    kind: AccountKind
    owner_program: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind is AccountKind.OTHER:
            return f"OTHER ({self.owner_program})"
        return self.kind.value


def classify(
    account_info: Any,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
    system_program_id: Pubkey = SYSTEM_PROGRAM_ID,
) -> Classification:
    """
    Classify an account from its RPC info.

    Args:
        account_info: solders ``Account`` (or anything with ``owner`` and
            ``data``), or None when the account does not exist.

    Returns:
        Classification; absence of the account is the CLOSED signal.
    """
    if account_info is None:
        return Classification(AccountKind.CLOSED)

    owner = account_info.owner
    if owner == system_program_id and len(account_info.data) == 0:
        return Classification(AccountKind.SYSTEM_WALLET, str(owner))
    if owner == token_program_id:
        return Classification(AccountKind.TOKEN_ACCOUNT, str(owner))
    return Classification(AccountKind.OTHER, str(owner))


def token_balance(data: bytes) -> int:
    """Token amount stored in a token account record."""
    return struct.unpack_from("<Q", bytes(data), TOKEN_AMOUNT_OFFSET)[0]


def token_owner(data: bytes) -> Pubkey:
    """Owner (close authority by default) of a token account record."""
    return Pubkey.from_bytes(bytes(data)[TOKEN_OWNER_OFFSET:TOKEN_AMOUNT_OFFSET])
