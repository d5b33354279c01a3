"""
Ticketeer - Database Manager
============================

Single SQLite connection shared by every ticket operation.

DESIGN:
    One DatabaseManager per process (get_db()). The connection is opened
    with check_same_thread=False and every statement is serialized on
    an internal lock, so the event loop and any worker thread can share
    it. Table-specific operations live in mixins, one per table group.

    Multi-statement changes that must land together (closing a ticket
    and appending its closure entry) go through transaction(), which
    holds the lock for the whole block and rolls back on any exception.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from src.core.logger import logger
from src.core.constants import DB_CONNECTION_TIMEOUT, SQLITE_BUSY_TIMEOUT

from src.core.database.schema import SchemaMixin
from src.core.database.categories import CategoriesMixin
from src.core.database.fields import FieldsMixin
from src.core.database.tickets import TicketsMixin
from src.core.database.messages import MessagesMixin
from src.core.database.members import MembersMixin


# =============================================================================
# Location
# =============================================================================

# src/core/database/manager.py -> <project>/data/tickets.db
DATA_DIR: Path = Path(__file__).resolve().parents[3] / "data"
DB_PATH: Path = DATA_DIR / "tickets.db"

PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT}",
)


# =============================================================================
# Database Manager
# =============================================================================

class DatabaseManager(
    SchemaMixin,
    CategoriesMixin,
    FieldsMixin,
    TicketsMixin,
    MessagesMixin,
    MembersMixin,
):
    """Process-wide ticket database (singleton)."""

    _instance: Optional["DatabaseManager"] = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "DatabaseManager":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._initialized = False
                cls._instance = instance
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._db_lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None
        self.path: Path = DB_PATH

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._open()
        self._init_tables()
        self._initialized = True

        logger.tree("Database Ready", [
            ("Path", str(self.path)),
            ("Categories", str(len(self.get_categories()))),
            ("Open Tickets", str(len(self.get_open_tickets()))),
        ], emoji="🗄️")

    # =========================================================================
    # Connection
    # =========================================================================

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self.path), check_same_thread=False, timeout=DB_CONNECTION_TIMEOUT)
            for pragma in PRAGMAS:
                conn.execute(pragma)
        except sqlite3.Error as e:
            logger.error("Database Connection Failed", [
                ("Path", str(self.path)),
                ("Error", str(e)),
            ])
            raise
        conn.row_factory = sqlite3.Row
        self._conn = conn
        return conn

    def _connection(self) -> sqlite3.Connection:
        """Current connection, reopened if it was closed or went bad."""
        if self._conn is None:
            return self._open()
        try:
            self._conn.execute("SELECT 1")
        except sqlite3.Error:
            logger.warning("Database Connection Lost, Reconnecting", [("Path", str(self.path))])
            return self._open()
        return self._conn

    def close(self) -> None:
        with self._db_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Database Connection Closed")

    # =========================================================================
    # Statements
    # =========================================================================

    def execute(self, query: str, params: Tuple = (), commit: bool = True) -> sqlite3.Cursor:
        """Run one statement under the lock, committing unless told not to."""
        with self._db_lock:
            conn = self._connection()
            try:
                cursor = conn.execute(query, params)
                if commit:
                    conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
            return cursor

    def fetchone(self, query: str, params: Tuple = ()) -> Optional[sqlite3.Row]:
        return self.execute(query, params, commit=False).fetchone()

    def fetchall(self, query: str, params: Tuple = ()) -> List[sqlite3.Row]:
        return self.execute(query, params, commit=False).fetchall()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """
        Run several statements atomically.

        Usage:
            with db.transaction() as tx:
                tx.execute("UPDATE tickets SET closed_at = ? ...", (...))
                tx.execute("INSERT INTO ticket_messages ...", (...))

        Yields:
            A cursor; tx.rowcount and tx.lastrowid refer to the last
            statement. Commits on exit, rolls back if the block raises.
        """
        with self._db_lock:
            conn = self._connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn.cursor()
            except BaseException as e:
                conn.rollback()
                logger.warning("Database Transaction Rolled Back", [
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100] or "-"),
                ])
                raise
            conn.commit()


def get_db() -> DatabaseManager:
    """Shared DatabaseManager instance."""
    return DatabaseManager()


__all__ = ["DatabaseManager", "get_db", "DB_PATH", "DATA_DIR"]
