from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoredRecord(BaseModel):
    """Base shape for append-only records: opaque id plus creation time."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(extra="ignore", frozen=True)
