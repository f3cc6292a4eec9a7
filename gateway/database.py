"""Database schema and connection management for the SQLite mapping store."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator
from urllib.parse import quote

CONNECT_TIMEOUT_SECONDS = 5.0


def init_database(database_path: str) -> None:
    """
    Create the archive_records table if it doesn't exist.

    Records are written by the sealing pipeline; the gateway itself only
    reads them.
    """
    db_path = Path(database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(database_path, read_only=False) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS archive_records (
                identifier TEXT PRIMARY KEY,
                file_path TEXT NOT NULL,
                created_at TEXT
            )
        """)

        conn.commit()


@contextmanager
def get_db_connection(
    database_path: str,
    read_only: bool = True,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Read-only connections fail instead of creating a missing database file.
    """
    if read_only:
        uri = f"file:{quote(Path(database_path).as_posix())}?mode=ro"
        conn = sqlite3.connect(uri, uri=True, timeout=CONNECT_TIMEOUT_SECONDS)
    else:
        conn = sqlite3.connect(database_path, timeout=CONNECT_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
