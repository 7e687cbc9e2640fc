"""
Chain RPC Client
================
The engine's only door to the chain.

- Account reads, blockhash, send and confirm go through solana-py's
  ``Client`` with solders types.
- History lookups used by account sync are raw JSON-RPC posts
  (jsonParsed dicts are easier to filter than typed responses).

Preflight rejections surface as ``SendTransactionError`` carrying the
simulation logs and the structured error; blockhash expiry surfaces as
solana-py's ``TransactionExpiredBlockheightExceededError``.
"""

from typing import Any, Dict, List, Optional, Tuple

import requests
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.rpc.errors import SendTransactionPreflightFailureMessage
from solders.signature import Signature

from config.settings import Settings
from reclaimer.modules.reclaim.errors import SendTransactionError
from reclaimer.shared.system.logging import Logger


class ChainRpcClient:
    """
    Usage:
        rpc = ChainRpcClient(Settings.RPC_URL)
        info = rpc.get_account_info(address)      # solders Account | None
        blockhash, last_valid = rpc.get_latest_blockhash()
    """

    def __init__(self, rpc_url: Optional[str] = None, timeout: float = Settings.RPC_TIMEOUT_S):
        self.rpc_url = rpc_url or Settings.RPC_URL
        self.timeout = timeout
        self.client = Client(self.rpc_url, commitment=Confirmed, timeout=timeout)

    # =========================================================================
    # ACCOUNT READS
    # =========================================================================

    def get_account_info(self, address: str):
        """Account at ``address`` or None when it does not exist."""
        resp = self.client.get_account_info(Pubkey.from_string(address), commitment=Confirmed)
        return resp.value

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def get_latest_blockhash(self) -> Tuple[Hash, int]:
        resp = self.client.get_latest_blockhash(Confirmed)
        return resp.value.blockhash, resp.value.last_valid_block_height

    def send_raw_transaction(self, raw_tx: bytes) -> Signature:
        """
        Submit a signed transaction with preflight on.

        Raises:
            SendTransactionError: node rejected the transaction in preflight
        """
        opts = TxOpts(skip_preflight=False, preflight_commitment=Confirmed, max_retries=2)
        try:
            return self.client.send_raw_transaction(raw_tx, opts=opts).value
        except RPCException as e:
            payload = e.args[0] if e.args else None
            if isinstance(payload, SendTransactionPreflightFailureMessage):
                sim = payload.data
                raise SendTransactionError(
                    payload.message,
                    logs=sim.logs or [],
                    error=sim.err,
                ) from e
            raise SendTransactionError(str(payload or e)) from e

    def confirm_transaction(self, signature: Signature, blockhash: Hash, last_valid_block_height: int) -> Any:
        """
        Wait for ``confirmed`` commitment, bounded by the blockhash window.

        Returns:
            The on-chain execution error, or None on success.

        Raises:
            TransactionExpiredBlockheightExceededError: window passed first
        """
        Logger.debug(f"[SUBMIT] Confirming {str(signature)[:16]}... (blockhash {str(blockhash)[:8]}...)")
        resp = self.client.confirm_transaction(
            signature,
            commitment=Confirmed,
            last_valid_block_height=last_valid_block_height,
        )
        status = resp.value[0] if resp.value else None
        return status.err if status is not None else None

    # =========================================================================
    # HISTORY (raw JSON-RPC)
    # =========================================================================

    def _rpc_call(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        response = requests.post(self.rpc_url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        if "error" in data:
            raise RuntimeError(f"{method} failed: {data['error']}")
        return data.get("result")

    def get_signatures_for_address(self, address: str, limit: int = 10) -> List[Dict[str, Any]]:
        result = self._rpc_call(
            "getSignaturesForAddress",
            [address, {"limit": limit, "commitment": "confirmed"}],
        )
        return result or []

    def get_parsed_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        return self._rpc_call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "commitment": "confirmed",
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
