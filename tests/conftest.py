from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'pipelines.steps'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


class FakeStore:
    """In-memory RecordStorePort honoring the SQLite store's unique fields."""

    def __init__(self) -> None:
        self.data: Dict[str, List[Dict[str, Any]]] = {}

    def add(self, collection: str, record: Dict[str, Any]) -> str:
        from db import schema
        from errors import DuplicateRecord
        from models import new_id

        cols = schema.columns(collection)
        row = {c: record.get(c) for c in cols}
        row["id"] = row["id"] or new_id()
        rows = self.data.setdefault(collection, [])
        unique = schema.UNIQUE_FIELDS.get(collection)
        if unique and any(r[unique] == row[unique] for r in rows):
            raise DuplicateRecord(f"{collection}: UNIQUE constraint failed: {unique}")
        if any(r["id"] == row["id"] for r in rows):
            raise DuplicateRecord(f"{collection}: UNIQUE constraint failed: id")
        rows.append(row)
        return row["id"]

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        rows = self.find(collection, id=record_id)
        return rows[0] if rows else None

    def find(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        from db import schema

        cols = schema.columns(collection)
        for key in filters:
            if key not in cols:
                raise KeyError(f"Unknown field for {collection}: {key}")
        rows = [r for r in self.data.get(collection, []) if all(r.get(k) == v for k, v in filters.items())]
        return [dict(r) for r in reversed(rows)]

    def delete(self, collection: str, ids) -> int:
        wanted = set(ids)
        rows = self.data.get(collection, [])
        kept = [r for r in rows if r["id"] not in wanted]
        self.data[collection] = kept
        return len(rows) - len(kept)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    from config.settings import get_settings

    monkeypatch.setenv("RUN_ENV", "test")
    monkeypatch.setenv("EXTRACTION_PROVIDER", "regex")
    monkeypatch.setenv("LINKEDIN_LOOKUP_PROVIDER", "sandbox")
    monkeypatch.setenv("DELIVERABILITY_PROVIDER", "sandbox")
    monkeypatch.setenv("LLM_TRACE", "false")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
