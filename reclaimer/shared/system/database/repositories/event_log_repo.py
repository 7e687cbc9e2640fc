"""
Event Log Repository
====================
Durable event records (cycle start/finish, scheduled run results).
"""

import json
import time
from typing import Any, Dict, List

from reclaimer.shared.system.database.repositories.base import BaseRepository
from reclaimer.shared.system.logging import Logger

LEVELS = ("INFO", "WARN", "ERROR")


def serialize_meta(meta: Any) -> str:
    """JSON for the meta column; never None."""
    if meta is None:
        return "{}"
    if isinstance(meta, BaseException):
        meta = {"name": type(meta).__name__, "message": str(meta)}
    try:
        return json.dumps(meta, default=str)
    except (TypeError, ValueError):
        return "{}"


class EventLogRepository(BaseRepository):

    def init_table(self):
        with self.db.cursor(commit=True) as c:
            c.execute("""
            CREATE TABLE IF NOT EXISTS event_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                level TEXT NOT NULL CHECK(level IN ('INFO', 'WARN', 'ERROR')),
                message TEXT NOT NULL,
                meta TEXT NOT NULL DEFAULT '{}',
                timestamp INTEGER NOT NULL
            )
            """)

    def write(self, level: str, message: str, meta: Any = None) -> None:
        """
        Append an event. A failing insert is logged, never raised: the
        event log must not break the caller.
        """
        if level not in LEVELS:
            raise ValueError(f"Unknown event level: {level}")
        try:
            self._execute(
                "INSERT INTO event_logs (level, message, meta, timestamp) VALUES (?, ?, ?, ?)",
                (level, message, serialize_meta(meta), int(time.time() * 1000)),
                commit=True,
            )
        except Exception as e:
            Logger.error(f"[DB] Failed to write event log: {e}")

    def info(self, message: str, meta: Any = None) -> None:
        self.write("INFO", message, meta)

    def warn(self, message: str, meta: Any = None) -> None:
        self.write("WARN", message, meta)

    def error(self, message: str, meta: Any = None) -> None:
        self.write("ERROR", message, meta)

    def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        rows = self._fetchall(
            "SELECT * FROM event_logs ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,),
        )
        for row in rows:
            row["meta"] = json.loads(row["meta"] or "{}")
        return rows
