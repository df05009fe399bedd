"""
Database connection management for the API.

create_app() builds one ConnectionPool per application and stores it on
``app.state.pool``; routes receive connections through the get_db()
dependency.  There is no module-level database handle, so several apps
(e.g. one per test) can run side by side against different files.
"""

import logging
import queue
import sqlite3
import threading
from collections.abc import Generator
from pathlib import Path

from fastapi import HTTPException, Request

from utils.database import init_pragmas

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Simple SQLite connection pool using a queue for thread-safety.

    Connections are created lazily up to ``max_size``.  When a connection is
    released it is returned to the pool (not closed) so subsequent requests
    can reuse it without the open/pragma overhead.
    """

    def __init__(self, db_path: Path, max_size: int = 10) -> None:
        self.db_path = db_path
        self._max_size = max_size
        self._pool: queue.Queue[sqlite3.Connection] = queue.Queue(maxsize=max_size)
        self._active = 0
        self._lock = threading.Lock()

    def _make_conn(self) -> sqlite3.Connection:
        """Open a new writable connection with standard pragmas."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False, timeout=10)
        conn.row_factory = sqlite3.Row
        init_pragmas(conn)
        return conn

    def acquire(self) -> sqlite3.Connection:
        """Acquire a connection from the pool (create if needed, block if full)."""
        try:
            return self._pool.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            if self._active < self._max_size:
                self._active += 1
                return self._make_conn()
        # Pool is full, wait for one to be released
        return self._pool.get(timeout=30)

    def release(self, conn: sqlite3.Connection) -> None:
        """Return a connection to the pool."""
        if conn.in_transaction:
            conn.rollback()
        try:
            self._pool.put_nowait(conn)
        except queue.Full:
            conn.close()
            with self._lock:
                self._active -= 1

    def close_all(self) -> None:
        """Close all pooled connections (call on shutdown)."""
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except queue.Empty:
                break
        with self._lock:
            self._active = 0


def get_db(request: Request) -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency: yield a pooled connection, release it on exit.

    Raises HTTP 503 with a readable message if the database file is missing,
    instead of letting sqlite3 silently create an empty one.

    Usage in a route::

        @router.get("/example")
        def example(conn: sqlite3.Connection = Depends(get_db)):
            ...
    """
    pool: ConnectionPool = request.app.state.pool
    if not pool.db_path.exists():
        raise HTTPException(
            status_code=503,
            detail=(
                f"Database not found at '{pool.db_path}'. "
                "Run 'python main.py --init-db' to create it."
            ),
        )
    conn = pool.acquire()
    try:
        yield conn
    finally:
        pool.release(conn)
