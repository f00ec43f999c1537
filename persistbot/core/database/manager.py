"""
PersistBot - Database Manager
=============================

One SQLite connection shared by every mixin.

DESIGN:
    A single connection in WAL mode guarded by one thread lock. Every
    statement runs under that lock, so reads and writes on one
    (guild, member) row never interleave. Multi-statement changes use
    transaction(), which holds the lock from BEGIN to COMMIT.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from persistbot.core.logger import logger
from persistbot.core.constants import DB_CONNECTION_TIMEOUT, SQLITE_BUSY_TIMEOUT
from persistbot.core.database.base import DB_PATH

from persistbot.core.database.schema import SchemaMixin
from persistbot.core.database.persisted import PersistedDataMixin
from persistbot.core.database.persist_config import PersistConfigMixin
from persistbot.core.database.allowed_guilds import AllowedGuildsMixin
from persistbot.core.database.audit import AuditMixin


_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT}",
)


class DatabaseManager(
    SchemaMixin,
    PersistedDataMixin,
    PersistConfigMixin,
    AllowedGuildsMixin,
    AuditMixin,
):
    """
    Process-wide SQLite access point.

    The first construction opens the database (optionally at db_path);
    later constructions return the same instance. Tests reset
    DatabaseManager._instance to get a fresh file.
    """

    _instance: Optional["DatabaseManager"] = None
    _instance_lock = threading.Lock()

    def __new__(cls, db_path: Optional[Path] = None) -> "DatabaseManager":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._initialized = False
                cls._instance = instance
        return cls._instance

    def __init__(self, db_path: Optional[Path] = None) -> None:
        if self._initialized:
            return

        self.db_path: Path = Path(db_path) if db_path else DB_PATH
        self._db_lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_tables()
        self._initialized = True

        logger.tree("Database Ready", [
            ("Path", str(self.db_path)),
            ("Stored Records", str(self.count_persisted_data())),
        ], emoji="🗄️")

    # =========================================================================
    # Connection
    # =========================================================================

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=DB_CONNECTION_TIMEOUT,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            logger.error("Database Open Failed", [
                ("Path", str(self.db_path)),
                ("Error", str(e)),
            ])
            raise
        conn.row_factory = sqlite3.Row
        for pragma in _PRAGMAS:
            conn.execute(pragma)
        return conn

    def _get_conn(self) -> sqlite3.Connection:
        """Connection for the caller, opened lazily (also after close())."""
        if self._conn is None:
            self._conn = self._open()
        return self._conn

    # =========================================================================
    # Queries
    # =========================================================================

    def execute(self, query: str, params: Tuple = (), commit: bool = True) -> sqlite3.Cursor:
        """Run one statement under the database lock."""
        with self._db_lock:
            conn = self._get_conn()
            cursor = conn.execute(query, params)
            if commit:
                conn.commit()
            return cursor

    def fetchone(self, query: str, params: Tuple = ()) -> Optional[sqlite3.Row]:
        with self._db_lock:
            return self._get_conn().execute(query, params).fetchone()

    def fetchall(self, query: str, params: Tuple = ()) -> List[sqlite3.Row]:
        with self._db_lock:
            return self._get_conn().execute(query, params).fetchall()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """
        Run several statements atomically.

        Usage:
            with db.transaction() as tx:
                tx.execute("DELETE FROM api_permissions WHERE guild_id = ?", (guild_id,))
                tx.execute("DELETE FROM allowed_guilds WHERE id = ?", (guild_id,))
        """
        with self._db_lock:
            conn = self._get_conn()
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn.cursor()
            except BaseException as e:
                conn.rollback()
                logger.warning("Database Transaction Rolled Back", [
                    ("Error", str(e)[:100] or type(e).__name__),
                ])
                raise
            conn.commit()

    def close(self) -> None:
        """Close the connection; the next query reopens it."""
        with self._db_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Database Connection Closed")


def get_db() -> DatabaseManager:
    """Get the global database manager instance."""
    return DatabaseManager()


__all__ = ["DatabaseManager", "get_db"]
