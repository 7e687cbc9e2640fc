"""
Operator Wallet
===============
Loads the single operator keypair. The engine never generates or rotates it.

Accepted secret formats:
- JSON byte array (solana-keygen file format), inline or in a file
- base58 encoded 64-byte secret key
"""

import json
import os
from typing import Optional

import base58
from solders.keypair import Keypair

from config.settings import Settings
from reclaimer.modules.reclaim.errors import OperatorKeyError
from reclaimer.shared.system.logging import Logger


def parse_secret_key(raw: str) -> Keypair:
    raw = raw.strip()
    try:
        if raw.startswith("["):
            return Keypair.from_bytes(bytes(json.loads(raw)))
        return Keypair.from_bytes(base58.b58decode(raw))
    except (ValueError, TypeError) as e:
        raise OperatorKeyError(f"Invalid operator key format: {e}") from e


def load_operator_keypair(
    private_key: Optional[str] = None,
    keypair_file: Optional[str] = None,
    expected_address: Optional[str] = None,
) -> Keypair:
    """
    Resolve the operator keypair from an inline secret, else a keypair file.

    Raises:
        OperatorKeyError: no key found, bad format, or address mismatch
    """
    private_key = Settings.OPERATOR_PRIVATE_KEY if private_key is None else private_key
    keypair_file = Settings.OPERATOR_KEYPAIR_FILE if keypair_file is None else keypair_file
    expected_address = Settings.OPERATOR_ADDRESS if expected_address is None else expected_address

    if private_key:
        keypair = parse_secret_key(private_key)
    elif keypair_file and os.path.exists(keypair_file):
        with open(keypair_file, "r", encoding="utf-8") as f:
            keypair = parse_secret_key(f.read())
    else:
        raise OperatorKeyError("Operator key not found (set KORA_OPERATOR_PRIVATE_KEY or a keypair file)")

    if expected_address and str(keypair.pubkey()) != expected_address:
        raise OperatorKeyError("Keypair mismatch: key does not belong to the operator address")

    Logger.info(f"[OPERATOR] Loaded operator {str(keypair.pubkey())[:8]}...")
    return keypair
