from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from db import schema
from errors import DuplicateRecord
from models import new_id


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (list, dict)):
        # Preserve non-ASCII characters in stored JSON text
        return json.dumps(value, ensure_ascii=False)
    return value


class RecordsRepo:
    """SQLite-backed append-only record store (implements RecordStorePort).

    One connection is shared by the pipeline's worker threads; a lock
    serializes statement execution.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.Lock()

    def add(self, collection: str, record: Dict[str, Any]) -> str:
        """Insert a record; unknown keys are dropped. Returns the record id."""
        cols = schema.columns(collection)
        row = {k: _to_db(v) for k, v in record.items() if k in cols and v is not None}
        row.setdefault("id", new_id())
        names = list(row.keys())
        sql = (
            f"INSERT INTO {collection} ({', '.join(names)}) "
            f"VALUES ({', '.join('?' for _ in names)});"
        )
        with self._lock:
            try:
                self.conn.execute(sql, tuple(row[n] for n in names))
                self.conn.commit()
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise DuplicateRecord(f"{collection}: {e}") from e
        return str(row["id"])

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        rows = self.find(collection, id=record_id)
        return rows[0] if rows else None

    def find(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        cols = schema.columns(collection)
        where = []
        params: List[Any] = []
        for key, value in filters.items():
            if key not in cols:
                raise KeyError(f"Unknown field for {collection}: {key}")
            if value is None:
                where.append(f"{key} IS NULL")
            else:
                where.append(f"{key} = ?")
                params.append(_to_db(value))
        where_sql = (" WHERE " + " AND ".join(where)) if where else ""
        sql = f"SELECT * FROM {collection}{where_sql} ORDER BY created_at DESC, rowid DESC;"
        with self._lock:
            cur = self.conn.execute(sql, tuple(params))
            rows = cur.fetchall()
        return [dict(r) for r in rows]

    def delete(self, collection: str, ids: Iterable[str]) -> int:
        schema.columns(collection)
        id_list = list(ids)
        if not id_list:
            return 0
        deleted = 0
        with self._lock:
            # SQLite caps bound parameters per statement
            for i in range(0, len(id_list), 500):
                chunk = id_list[i:i + 500]
                cur = self.conn.execute(
                    f"DELETE FROM {collection} WHERE id IN ({', '.join('?' for _ in chunk)});",
                    tuple(chunk),
                )
                deleted += int(cur.rowcount or 0)
            self.conn.commit()
        return deleted


def open_store(db_path: str) -> RecordsRepo:
    """Open (and bootstrap) the SQLite store at ``db_path``."""
    from db.connection import get_connection

    conn = get_connection(db_path)
    schema.bootstrap(conn)
    return RecordsRepo(conn)
