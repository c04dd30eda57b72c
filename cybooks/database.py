import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from cybooks.config import settings

logger = logging.getLogger(__name__)

# In-memory databases are per-connection; used by tests and throwaway sessions.
MEMORY_DATABASE = ":memory:"


class Store:
    """Parameterised access to the SQLite database holding users, books, copies and loans.

    The connection runs in autocommit mode; ``transaction()`` opens an explicit
    ``BEGIN IMMEDIATE`` block so multi-statement updates are atomic. Nested
    ``transaction()`` blocks join the outermost one.
    """

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or settings.database_file
        self._lock = threading.RLock()
        self._depth = 0
        self._conn = sqlite3.connect(self.db_file, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")
        if self.db_file != MEMORY_DATABASE:
            # Better concurrent access for file databases
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")

    # ------------------------- Primitives ------------------------- #
    def query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, tuple(params)).fetchall()

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, tuple(params)).fetchone()

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run an UPDATE/DELETE statement and return the number of affected rows."""
        with self._lock:
            return self._conn.execute(sql, tuple(params)).rowcount

    def insert(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run an INSERT statement and return the new row id."""
        with self._lock:
            return self._conn.execute(sql, tuple(params)).lastrowid

    def insert_many(self, sql: str, rows: Sequence[Sequence[Any]]) -> None:
        with self._lock:
            self._conn.executemany(sql, [tuple(r) for r in rows])

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            self._conn.execute("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                try:
                    self._conn.execute("COMMIT")
                except sqlite3.Error:
                    # A failed COMMIT leaves the transaction open
                    self._conn.execute("ROLLBACK")
                    raise
            finally:
                self._depth = 0

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def create_tables(store: Store) -> None:
    """Create the tables used by the library if they do not exist yet."""
    store.execute("""
        CREATE TABLE IF NOT EXISTS Users (
            userID INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            address TEXT
        )
    """)
    store.execute("""
        CREATE TABLE IF NOT EXISTS Books (
            isbn TEXT PRIMARY KEY,
            copiesAvailable INTEGER NOT NULL DEFAULT 0 CHECK(copiesAvailable >= 0)
        )
    """)
    store.execute("""
        CREATE TABLE IF NOT EXISTS BookCopies (
            copyID INTEGER PRIMARY KEY AUTOINCREMENT,
            isbn TEXT NOT NULL,
            isLoaned BOOLEAN NOT NULL DEFAULT 0,
            FOREIGN KEY (isbn) REFERENCES Books(isbn)
        )
    """)
    # Loan history outlives the user: deleting a user nulls userID.
    store.execute("""
        CREATE TABLE IF NOT EXISTS Loans (
            loanID INTEGER PRIMARY KEY AUTOINCREMENT,
            userID INTEGER,
            copyID INTEGER NOT NULL,
            loanDate TEXT NOT NULL,
            numberOfDays INTEGER NOT NULL,
            dueDate TEXT NOT NULL,
            returnDate TEXT,
            isReturned BOOLEAN NOT NULL DEFAULT 0,
            FOREIGN KEY (userID) REFERENCES Users(userID) ON DELETE SET NULL,
            FOREIGN KEY (copyID) REFERENCES BookCopies(copyID)
        )
    """)

    store.execute("CREATE INDEX IF NOT EXISTS idx_bookcopies_isbn_loaned ON BookCopies(isbn, isLoaned)")
    store.execute("CREATE INDEX IF NOT EXISTS idx_loans_user_returned ON Loans(userID, isReturned)")
    store.execute("CREATE INDEX IF NOT EXISTS idx_loans_copy ON Loans(copyID)")
    store.execute("CREATE INDEX IF NOT EXISTS idx_loans_loan_date ON Loans(loanDate)")


def initialize_database(db_file: Optional[str] = None) -> Store:
    """Open the database and make sure the schema exists."""
    store = Store(db_file)
    create_tables(store)
    logger.debug("Database ready at %s", store.db_file)
    return store
