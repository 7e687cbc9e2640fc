from typing import Any, List, Optional
from reclaimer.shared.system.database.core import DatabaseCore


class BaseRepository:
    """
    Base class for table repositories.
    Wraps DatabaseCore cursors with row-as-dict helpers.
    """
    def __init__(self, db: DatabaseCore):
        self.db = db

    def _execute(self, query: str, params: tuple = (), commit: bool = False) -> int:
        """Run a statement; returns the affected row count."""
        with self.db.cursor(commit=commit) as c:
            c.execute(query, params)
            return c.rowcount

    def _fetchone(self, query: str, params: tuple = ()) -> Optional[dict]:
        with self.db.cursor() as c:
            c.execute(query, params)
            row = c.fetchone()
            return dict(row) if row else None

    def _fetchall(self, query: str, params: tuple = ()) -> List[dict]:
        with self.db.cursor() as c:
            c.execute(query, params)
            return [dict(row) for row in c.fetchall()]

    def _fetchval(self, query: str, params: tuple = (), default: Any = None) -> Any:
        """First column of the first row."""
        with self.db.cursor() as c:
            c.execute(query, params)
            row = c.fetchone()
            if row is None or row[0] is None:
                return default
            return row[0]

    def init_table(self):
        """Override this to create tables."""
        raise NotImplementedError
