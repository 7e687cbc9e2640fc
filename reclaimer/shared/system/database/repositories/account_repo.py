"""
Tracked Account Repository
==========================
Durable store for accounts under rent-reclaim observation.

Status workflow:
    MONITORING → PROBATION → (re-inspected after cooldown)
    MONITORING → RECLAIMED | MARKED_FOR_DEATH | ERROR

RECLAIMED is final: every status write is guarded so a reclaimed row
cannot move again. Writes are single-row; nothing is batched across
accounts.
"""

import time
from typing import Any, Dict, List, Optional

from reclaimer.shared.models.account import AccountStatus, TrackedAccount
from reclaimer.shared.system.database.repositories.base import BaseRepository
from reclaimer.shared.system.logging import Logger

# Columns update_status may touch besides status
_UPDATABLE_FIELDS = {
    "balance_lamports",
    "last_checked",
    "last_active_at",
    "reclaimed_at",
    "reclaim_tx_signature",
    "error_log",
}


def now_ms() -> int:
    return int(time.time() * 1000)


class AccountRepository(BaseRepository):
    """
    Repository for tracked accounts.

    Reserved columns:
    - retry_count / tx_count: stored for a future manual-review policy,
      never read by the engine
    """

    def init_table(self):
        with self.db.cursor(commit=True) as c:
            c.execute("""
            CREATE TABLE IF NOT EXISTS tracked_accounts (
                address TEXT PRIMARY KEY,
                owner_program TEXT,
                balance_lamports INTEGER NOT NULL DEFAULT 0 CHECK(balance_lamports >= 0),
                status TEXT NOT NULL DEFAULT 'MONITORING' CHECK(status IN (
                    'MONITORING', 'PROBATION', 'RECLAIMED', 'ERROR', 'MARKED_FOR_DEATH'
                )),
                last_checked INTEGER,
                last_active_at INTEGER,
                created_at INTEGER NOT NULL,
                reclaimed_at INTEGER,
                reclaim_tx_signature TEXT,
                error_log TEXT,
                retry_count INTEGER NOT NULL DEFAULT 0,
                tx_count INTEGER NOT NULL DEFAULT 0
            )
            """)

            c.execute("""
            CREATE INDEX IF NOT EXISTS idx_tracked_status
            ON tracked_accounts(status, last_checked)
            """)

        Logger.debug("[DB] tracked_accounts table initialized")

    def add_account(
        self,
        address: str,
        owner_program: Optional[str] = None,
        balance_lamports: int = 0,
        last_active_at: Optional[int] = None,
        created_at: Optional[int] = None,
    ) -> bool:
        """
        Start tracking an address in MONITORING.

        Returns:
            True if the row was new. Existing rows are left alone
            (INSERT OR IGNORE), so re-discovery never resets status.
        """
        created = created_at if created_at is not None else now_ms()
        inserted = self._execute("""
        INSERT OR IGNORE INTO tracked_accounts (
            address, owner_program, balance_lamports, last_active_at, status, created_at
        ) VALUES (?, ?, ?, ?, 'MONITORING', ?)
        """, (
            address,
            owner_program,
            max(0, int(balance_lamports)),
            last_active_at if last_active_at is not None else created,
            created,
        ), commit=True)
        return inserted > 0

    def get_account(self, address: str) -> Optional[TrackedAccount]:
        row = self._fetchone("SELECT * FROM tracked_accounts WHERE address = ?", (address,))
        return TrackedAccount.from_row(row) if row else None

    def list_accounts(self, status: Optional[AccountStatus] = None, limit: int = 100) -> List[TrackedAccount]:
        if status is None:
            rows = self._fetchall(
                "SELECT * FROM tracked_accounts ORDER BY created_at DESC, address LIMIT ?",
                (limit,),
            )
        else:
            rows = self._fetchall(
                "SELECT * FROM tracked_accounts WHERE status = ? ORDER BY created_at DESC, address LIMIT ?",
                (AccountStatus(status).value, limit),
            )
        return [TrackedAccount.from_row(r) for r in rows]

    def select_candidates(self, probation_cutoff_ms: int, limit: int) -> List[TrackedAccount]:
        """
        Accounts due for inspection.

        MONITORING rows, plus PROBATION rows last checked before the cutoff.
        Due PROBATION rows first (skipped MONITORING rows are never
        rewritten and must not pin the head of the batch), then creation,
        then address. A given table state always yields the same batch.
        """
        rows = self._fetchall("""
        SELECT * FROM tracked_accounts
        WHERE status = 'MONITORING'
           OR (status = 'PROBATION' AND last_checked < ?)
        ORDER BY CASE status WHEN 'PROBATION' THEN 0 ELSE 1 END, created_at ASC, address ASC
        LIMIT ?
        """, (probation_cutoff_ms, limit))
        return [TrackedAccount.from_row(r) for r in rows]

    def update_status(self, address: str, status: AccountStatus, **fields: Any) -> bool:
        """
        Single-row status write.

        Args:
            address: Row to update
            status: New status
            **fields: Any of balance_lamports, last_checked, last_active_at,
                reclaimed_at, reclaim_tx_signature, error_log

        Returns:
            False if the row is missing or already RECLAIMED.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown account fields: {sorted(unknown)}")

        status = AccountStatus(status)
        if fields.get("reclaim_tx_signature") and status is not AccountStatus.RECLAIMED:
            raise ValueError("reclaim_tx_signature is only written on the transition into RECLAIMED")

        assignments = ["status = ?"]
        params: List[Any] = [status.value]
        for column in sorted(fields):
            assignments.append(f"{column} = ?")
            params.append(fields[column])
        params.append(address)

        changed = self._execute(
            f"UPDATE tracked_accounts SET {', '.join(assignments)} "
            f"WHERE address = ? AND status != 'RECLAIMED'",
            tuple(params),
            commit=True,
        )
        if not changed:
            Logger.warning(f"[DB] No update for {address[:8]}... (missing or already reclaimed)")
        return changed > 0

    def mark_reclaimed(
        self,
        address: str,
        signature: Optional[str] = None,
        balance_lamports: Optional[int] = None,
        at_ms: Optional[int] = None,
    ) -> bool:
        ts = at_ms if at_ms is not None else now_ms()
        fields: Dict[str, Any] = {"reclaimed_at": ts, "last_checked": ts}
        if signature:
            fields["reclaim_tx_signature"] = signature
        if balance_lamports is not None:
            fields["balance_lamports"] = balance_lamports
        return self.update_status(address, AccountStatus.RECLAIMED, **fields)

    def mark_probation(self, address: str, balance_lamports: int, at_ms: Optional[int] = None) -> bool:
        ts = at_ms if at_ms is not None else now_ms()
        return self.update_status(
            address, AccountStatus.PROBATION, last_checked=ts, balance_lamports=balance_lamports
        )

    def mark_for_death(self, address: str, balance_lamports: int, at_ms: Optional[int] = None) -> bool:
        ts = at_ms if at_ms is not None else now_ms()
        return self.update_status(
            address, AccountStatus.MARKED_FOR_DEATH, last_checked=ts, balance_lamports=balance_lamports
        )

    def mark_error(self, address: str, error_message: str, at_ms: Optional[int] = None) -> bool:
        ts = at_ms if at_ms is not None else now_ms()
        return self.update_status(address, AccountStatus.ERROR, last_checked=ts, error_log=error_message)

    def count_by_status(self, status: AccountStatus) -> int:
        return self._fetchval(
            "SELECT COUNT(*) FROM tracked_accounts WHERE status = ?",
            (AccountStatus(status).value,),
            default=0,
        )

    def count_all(self) -> int:
        return self._fetchval("SELECT COUNT(*) FROM tracked_accounts", default=0)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Aggregate counts for reporting.

        Returns:
            {
                'total': int,
                'monitoring': int,
                'probation': int,
                'reclaimed': int,
                'marked_for_death': int,
                'errors': int,
                'recovered_lamports': int
            }
        """
        row = self._fetchone("""
        SELECT
            COUNT(*) as total,
            SUM(CASE WHEN status = 'MONITORING' THEN 1 ELSE 0 END) as monitoring,
            SUM(CASE WHEN status = 'PROBATION' THEN 1 ELSE 0 END) as probation,
            SUM(CASE WHEN status = 'RECLAIMED' THEN 1 ELSE 0 END) as reclaimed,
            SUM(CASE WHEN status = 'MARKED_FOR_DEATH' THEN 1 ELSE 0 END) as marked_for_death,
            SUM(CASE WHEN status = 'ERROR' THEN 1 ELSE 0 END) as errors,
            SUM(CASE WHEN status = 'RECLAIMED' THEN balance_lamports ELSE 0 END) as recovered_lamports
        FROM tracked_accounts
        """) or {}

        return {
            'total': row.get('total') or 0,
            'monitoring': row.get('monitoring') or 0,
            'probation': row.get('probation') or 0,
            'reclaimed': row.get('reclaimed') or 0,
            'marked_for_death': row.get('marked_for_death') or 0,
            'errors': row.get('errors') or 0,
            'recovered_lamports': row.get('recovered_lamports') or 0,
        }
