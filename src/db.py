"""Shared SQLite helpers: read-only connections, row_factory defaults."""

import sqlite3
from pathlib import Path


def readonly_connect(db_path: str | Path, row_factory: bool = True) -> sqlite3.Connection:
    """Open a read-only SQLite connection.

    Args:
        db_path: Path to database file. Must already exist.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
    """
    uri = f"file:{Path(db_path).expanduser()}?mode=ro"
    conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
