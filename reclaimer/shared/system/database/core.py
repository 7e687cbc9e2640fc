import sqlite3
import os
import time
from contextlib import contextmanager
from typing import Optional

from config.settings import Settings
from reclaimer.shared.system.logging import Logger


class DatabaseCore:
    """
    Core Database Connection Manager.
    Handles WAL mode and hands out short-lived connections.
    Singleton per database path; passing a different path swaps the instance.
    """
    _instance = None

    def __new__(cls, db_path: Optional[str] = None):
        path = db_path or Settings.DB_PATH
        if cls._instance is None or cls._instance.db_path != path:
            instance = super(DatabaseCore, cls).__new__(cls)
            instance.db_path = path
            instance._init()
            cls._instance = instance
        return cls._instance

    def _init(self):
        self._ensure_data_dir()
        self._init_wal_mode()
        # Schema init is handled by the individual repos

    def _ensure_data_dir(self):
        directory = os.path.dirname(self.db_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

    def _init_wal_mode(self):
        """Enable Write-Ahead Logging for concurrency."""
        try:
            with self.cursor(commit=True) as c:
                c.execute("PRAGMA journal_mode=WAL;")
                c.execute("PRAGMA synchronous=NORMAL;")
        except sqlite3.Error as e:
            Logger.warning(f"[DB] ⚠️ Failed to enable WAL mode: {e}")

    def get_connection(self):
        """Get a configured SQLite connection."""
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self, commit=False):
        """Context manager for database interaction."""
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            if commit:
                conn.commit()
        except Exception as e:
            if commit:
                conn.rollback()
            Logger.error(f"[DB] ❌ DB Error: {e}")
            raise
        finally:
            conn.close()

    def wait_for_connection(self, timeout=2.0) -> bool:
        """Ensure database is ready."""
        start = time.time()
        while time.time() - start < timeout:
            try:
                with self.cursor() as c:
                    c.execute("SELECT 1")
                    if c.fetchone():
                        Logger.info("[DB] Connection verified (WAL mode)")
                        return True
            except sqlite3.Error:
                time.sleep(0.1)
        return False
