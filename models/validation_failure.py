from __future__ import annotations

from typing import Literal

from models.record import StoredRecord


FailureStage = Literal["sender", "normalize", "extract", "score", "linkedin", "continuation"]


class ValidationFailure(StoredRecord):
    """A recorded pipeline failure awaiting operator review."""

    stage: FailureStage
    subject: str | None = None
    error: str
