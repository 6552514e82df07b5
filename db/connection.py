from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional


def get_connection(db_path: str, timeout: Optional[float] = 30.0) -> sqlite3.Connection:
    """Open the record store's SQLite connection.

    - parent directory created for file paths; ``:memory:`` is passed through
    - rows come back as ``sqlite3.Row`` so repos can build dicts
    - shareable across threads; callers serialize access (see RecordsRepo)
    - WAL journal so report commands can read while a run is writing
    """
    if db_path != ":memory:":
        Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=timeout or 30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    return conn
