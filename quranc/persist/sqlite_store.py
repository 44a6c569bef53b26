"""
SQLite-backed bucket store for caching.

Keys live in named buckets, and buckets may contain nested buckets. A bucket
is addressed by its path from the root (e.g. ("verses", "verse")).

Tables:
- buckets: path → parent path
- entries: (bucket path, key) → value BLOB + write timestamp

Reads happen in snapshot-isolated read transactions, writes in serialized
write transactions. Each thread gets its own connection; WAL mode lets
readers proceed while a writer holds the write lock.
"""

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from ..errors import BucketNotFoundError, TransactionError

logger = logging.getLogger(__name__)

# "/" cannot appear in a bucket name, so joined paths are unambiguous
PATH_SEP = "/"

BucketPath = Tuple[str, ...]


def _path_str(path: BucketPath) -> str:
    return PATH_SEP.join(path)


def _to_bytes(key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


class Bucket:
    """A bucket handle, valid only for the lifetime of its transaction."""

    def __init__(self, tx: "Transaction", path: BucketPath):
        self._tx = tx
        self.path = path

    @property
    def name(self) -> str:
        return self.path[-1]

    def get(self, key) -> Optional[bytes]:
        """
        Get value for a key.

        Returns:
            Binary value if found, None otherwise
        """
        self._tx._check_open()
        row = self._tx._conn.execute(
            "SELECT value FROM entries WHERE bucket = ? AND key = ?",
            (_path_str(self.path), _to_bytes(key)),
        ).fetchone()
        return bytes(row[0]) if row else None

    def put(self, key, value: bytes) -> None:
        """Set a key-value pair, replacing any existing value."""
        self._tx._check_writable()
        key = _to_bytes(key)
        if not key:
            raise ValueError("key must not be empty")
        self._tx._conn.execute(
            "INSERT OR REPLACE INTO entries (bucket, key, value, ts) VALUES (?, ?, ?, ?)",
            (_path_str(self.path), key, bytes(value), int(time.time())),
        )

    def bucket(self, name: str) -> "Bucket":
        """Open a nested bucket."""
        return self._tx._open(self.path + (name,))

    def create_bucket_if_not_exists(self, name: str) -> "Bucket":
        """Create a nested bucket unless it already exists."""
        return self._tx._create(self.path + (name,))

    def __repr__(self) -> str:
        return f"Bucket({_path_str(self.path)!r})"


class Transaction:
    """A read or write transaction on a BucketStore connection."""

    def __init__(self, conn: sqlite3.Connection, writable: bool):
        self._conn = conn
        self.writable = writable
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionError("transaction closed")

    def _check_writable(self) -> None:
        self._check_open()
        if not self.writable:
            raise TransactionError("write attempted in read-only transaction")

    def _exists(self, path: BucketPath) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM buckets WHERE path = ?", (_path_str(path),)
        ).fetchone()
        return row is not None

    def _open(self, path: BucketPath) -> Bucket:
        self._check_open()
        if not self._exists(path):
            raise BucketNotFoundError(f"bucket {_path_str(path)!r} not found")
        return Bucket(self, path)

    def _create(self, path: BucketPath) -> Bucket:
        self._check_writable()
        name = path[-1]
        if not name or PATH_SEP in name:
            raise ValueError(f"invalid bucket name: {name!r}")

        parent = path[:-1]
        if parent and not self._exists(parent):
            raise BucketNotFoundError(f"bucket {_path_str(parent)!r} not found")

        self._conn.execute(
            "INSERT OR IGNORE INTO buckets (path, parent) VALUES (?, ?)",
            (_path_str(path), _path_str(parent)),
        )
        return Bucket(self, path)

    def bucket(self, name: str) -> Bucket:
        """Open a top-level bucket."""
        return self._open((name,))

    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        """Create a top-level bucket unless it already exists."""
        return self._create((name,))


class BucketStore:
    """
    File-backed SQLite store with nested buckets.

    Usage:
        >>> store = BucketStore(Path("data/cache/quran.db"))
        >>> with store.update() as tx:
        ...     tx.create_bucket_if_not_exists("chapters").put(b"0", b"...")
        >>> with store.view() as tx:
        ...     tx.bucket("chapters").get(b"0")
    """

    def __init__(self, db_path: Path, timeout: float = 10.0):
        """
        Initialize bucket store at given path.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout

        self._local = threading.local()
        # thread → its connection; entries of finished threads are pruned
        self._conns: dict[threading.Thread, sqlite3.Connection] = {}
        self._conns_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._closed = False

        try:
            self._init_tables()
        except BaseException:
            self.close()
            raise

    def _connect(self) -> sqlite3.Connection:
        if self._closed:
            raise TransactionError("store closed")

        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn

        # isolation_level=None: transactions are managed explicitly
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.execute("PRAGMA synchronous=NORMAL")

        self._local.conn = conn
        with self._conns_lock:
            self._prune_dead_threads()
            self._conns[threading.current_thread()] = conn
        return conn

    def _prune_dead_threads(self) -> None:
        """Close connections left behind by threads that have exited."""
        dead = [t for t in self._conns if not t.is_alive()]
        for t in dead:
            self._conns.pop(t).close()
        if dead:
            logger.debug(f"Closed {len(dead)} connection(s) of finished threads")

    def _init_tables(self) -> None:
        """Create store tables if they don't exist."""
        conn = self._connect()
        # WAL is persistent in the database file
        conn.execute("PRAGMA journal_mode=WAL")
        with self._write_lock:
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS buckets (
                        path TEXT PRIMARY KEY,
                        parent TEXT NOT NULL
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS entries (
                        bucket TEXT NOT NULL,
                        key BLOB NOT NULL,
                        value BLOB NOT NULL,
                        ts INTEGER NOT NULL,
                        PRIMARY KEY (bucket, key)
                    )
                """)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise

    @contextmanager
    def view(self) -> Iterator[Transaction]:
        """
        Open a read-only transaction.

        All reads inside the block see one consistent snapshot. The
        transaction is always released, whatever happens in the block.
        """
        conn = self._connect()
        conn.execute("BEGIN DEFERRED")
        tx = Transaction(conn, writable=False)
        try:
            yield tx
        finally:
            tx._closed = True
            conn.execute("ROLLBACK")

    @contextmanager
    def update(self) -> Iterator[Transaction]:
        """
        Open a read-write transaction.

        Write transactions are serialized. Commits when the block exits
        normally; rolls back and re-raises if it raises.
        """
        conn = self._connect()
        with self._write_lock:
            conn.execute("BEGIN IMMEDIATE")
            tx = Transaction(conn, writable=True)
            try:
                yield tx
            except BaseException:
                tx._closed = True
                conn.execute("ROLLBACK")
                raise
            tx._closed = True
            conn.execute("COMMIT")

    def buckets(self) -> list[str]:
        """List all bucket paths, sorted."""
        with self.view() as tx:
            rows = tx._conn.execute("SELECT path FROM buckets ORDER BY path").fetchall()
        return [row[0] for row in rows]

    def stats(self) -> dict[str, dict]:
        """
        Get statistics for every bucket.

        Returns:
            Dict of bucket path → {count, total_bytes, oldest_ts, newest_ts}
        """
        with self.view() as tx:
            rows = tx._conn.execute("""
                SELECT
                    b.path,
                    COUNT(e.key),
                    SUM(LENGTH(e.value)),
                    MIN(e.ts),
                    MAX(e.ts)
                FROM buckets b
                LEFT JOIN entries e ON e.bucket = b.path
                GROUP BY b.path
                ORDER BY b.path
            """).fetchall()

        return {
            row[0]: {
                "count": row[1] or 0,
                "total_bytes": row[2] or 0,
                "oldest_ts": row[3] or 0,
                "newest_ts": row[4] or 0,
            }
            for row in rows
        }

    def close(self) -> None:
        """Close all connections."""
        self._closed = True
        with self._conns_lock:
            for conn in self._conns.values():
                conn.close()
            self._conns.clear()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
