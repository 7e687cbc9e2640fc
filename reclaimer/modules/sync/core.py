"""
Account Sync
============
Discovers accounts the operator created and starts tracking them.

Scans the operator's recent signatures, keeps transactions the operator
paid for, and records every System Program ``createAccount`` target as a
MONITORING row, recording the program the instruction assigned it to.
Re-discovered addresses are left as they are.
"""

import time
from typing import Any, Dict, List, Optional

from reclaimer.shared.system.logging import Logger


def _pubkey_of(key: Any) -> Optional[str]:
    # jsonParsed account keys are dicts; legacy encodings are bare strings
    if isinstance(key, dict):
        return key.get("pubkey")
    return key


def extract_created_accounts(tx: Dict[str, Any], operator_address: str) -> List[Dict[str, Any]]:
    """
    ``createAccount`` instructions in ``tx`` paid for by the operator.

    Returns:
        [{'address', 'owner_program', 'lamports', 'block_time_ms'}, ...]
    """
    if not tx or not tx.get("meta") or not tx.get("transaction"):
        return []

    message = tx["transaction"].get("message", {})
    account_keys = message.get("accountKeys") or []
    if not account_keys or _pubkey_of(account_keys[0]) != operator_address:
        return []

    block_time = tx.get("blockTime")
    block_time_ms = block_time * 1000 if block_time else None

    created = []
    for ix in message.get("instructions", []):
        parsed = ix.get("parsed")
        if ix.get("program") != "system" or not isinstance(parsed, dict):
            continue
        if parsed.get("type") != "createAccount":
            continue
        info = parsed.get("info", {})
        created.append({
            "address": info["newAccount"],
            "owner_program": info.get("owner", "SystemProgram"),
            "lamports": int(info.get("lamports", 0)),
            "block_time_ms": block_time_ms,
        })
    return created


class AccountSyncJob:
    """
    Usage:
        job = AccountSyncJob(account_repo, rpc)
        result = job.sync(operator_address)   # {'scanned': 10, 'added': 2}
    """

    def __init__(self, store, rpc, history_limit: int = 10):
        self.store = store
        self.rpc = rpc
        self.history_limit = history_limit

    def sync(self, operator_address: str) -> Dict[str, int]:
        Logger.info(f"[SYNC] Starting sync for {operator_address[:8]}...")

        signatures = self.rpc.get_signatures_for_address(operator_address, limit=self.history_limit)
        transactions = []
        for entry in signatures:
            tx = self.rpc.get_parsed_transaction(entry["signature"])
            if tx is not None:
                transactions.append(tx)

        Logger.info(f"[SYNC] Fetched {len(transactions)} transactions")

        added = 0
        for tx in transactions:
            for found in extract_created_accounts(tx, operator_address):
                is_new = self.store.add_account(
                    found["address"],
                    owner_program=found["owner_program"],
                    balance_lamports=found["lamports"],
                    last_active_at=found["block_time_ms"] or int(time.time() * 1000),
                )
                if is_new:
                    Logger.success(f"[SYNC] Tracking {found['address']}")
                    added += 1

        Logger.info(f"[SYNC] Sync complete: {added} new accounts")
        return {"scanned": len(transactions), "added": added}
