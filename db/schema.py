from __future__ import annotations

import sqlite3
from typing import Dict, List, Tuple


# Append-only collections: (column, SQLite type). Every table is keyed by an
# opaque text id and carries a created_at ISO timestamp.
COLLECTIONS: Dict[str, List[Tuple[str, str]]] = {
    "submissions": [
        ("source_email", "TEXT"),
        ("subject", "TEXT"),
        ("content", "TEXT"),
        ("payload", "BLOB"),
        ("mime_type", "TEXT NOT NULL"),
        ("source_ref", "TEXT"),
        ("received_at", "TEXT"),
    ],
    "extracted_profiles": [
        ("submission_id", "TEXT NOT NULL"),
        ("name", "TEXT"),
        ("company", "TEXT"),
        ("designation", "TEXT"),
        ("phone", "TEXT"),
        ("email", "TEXT"),
        ("linkedin_url", "TEXT"),
        ("extraction_status", "TEXT NOT NULL"),
        ("raw_text", "TEXT"),
        ("error", "TEXT"),
    ],
    "verification_results": [
        ("profile_id", "TEXT NOT NULL"),
        ("score", "REAL NOT NULL"),
        ("domain_match", "INTEGER NOT NULL"),
        ("deliverability", "TEXT NOT NULL"),
        ("reason", "TEXT"),
    ],
    "linkedin_verifications": [
        ("profile_id", "TEXT"),
        ("status", "TEXT NOT NULL"),
        ("message", "TEXT"),
        ("resolved_profile_url", "TEXT"),
        ("claimed_url", "TEXT"),
        ("claimed_company", "TEXT"),
    ],
    "verified_profiles": [
        ("profile_id", "TEXT NOT NULL"),
        ("name", "TEXT"),
        ("company", "TEXT"),
        ("designation", "TEXT"),
        ("phone", "TEXT"),
        ("email", "TEXT"),
        ("linkedin_url", "TEXT"),
        ("verified", "INTEGER NOT NULL DEFAULT 1"),
        ("verification_details", "TEXT"),
        ("promoted_by", "TEXT"),
        ("promoted_at", "TEXT"),
    ],
    "validation_failures": [
        ("stage", "TEXT NOT NULL"),
        ("subject", "TEXT"),
        ("error", "TEXT NOT NULL"),
    ],
    # Registered senders allowed to submit content
    "clients": [
        ("email", "TEXT NOT NULL"),
        ("name", "TEXT"),
    ],
}

# At most one record per value of these fields
UNIQUE_FIELDS: Dict[str, str] = {
    "verified_profiles": "profile_id",
    "clients": "email",
}

# Back-reference lookups used by the pipeline and reports
_INDEXES: List[Tuple[str, str]] = [
    ("extracted_profiles", "submission_id"),
    ("verification_results", "profile_id"),
    ("linkedin_verifications", "profile_id"),
    ("validation_failures", "stage"),
]


def columns(collection: str) -> List[str]:
    if collection not in COLLECTIONS:
        raise KeyError(f"Unknown collection: {collection}")
    return ["id", "created_at"] + [name for name, _ in COLLECTIONS[collection]]


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create collection tables and indexes (idempotent)."""
    cur = conn.cursor()
    for table, cols in COLLECTIONS.items():
        col_sql = ",\n".join(f"  {name} {sql_type}" for name, sql_type in cols)
        cur.execute(
            (
                f"CREATE TABLE IF NOT EXISTS {table} (\n"
                "  id TEXT PRIMARY KEY,\n"
                "  created_at TEXT NOT NULL DEFAULT (datetime('now')),\n"
                f"{col_sql}\n"
                ")"
            )
        )
    for table, field in UNIQUE_FIELDS.items():
        cur.execute(f"CREATE UNIQUE INDEX IF NOT EXISTS uq_{table}_{field} ON {table}({field});")
    for table, field in _INDEXES:
        cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_{field} ON {table}({field});")
    conn.commit()
