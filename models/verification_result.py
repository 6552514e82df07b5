from __future__ import annotations

from typing import Literal

from pydantic import Field

from models.record import StoredRecord


Deliverability = Literal["DELIVERABLE", "UNDELIVERABLE", "RISKY"]


class VerificationResult(StoredRecord):
    """Heuristic deliverability/domain score for an ExtractedProfile."""

    profile_id: str
    score: float = Field(ge=0.0, le=1.0)
    domain_match: bool
    deliverability: Deliverability
    reason: str = ""
