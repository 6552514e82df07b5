from __future__ import annotations

from typing import Literal

from models.record import StoredRecord


LinkedInStatus = Literal[
    "verified",
    "company_mismatch",
    "profile_not_found",
    "api_limit_reached",
    "error",
]


class LinkedInVerification(StoredRecord):
    """Outcome of checking a claimed company against a LinkedIn profile."""

    profile_id: str | None = None
    status: LinkedInStatus
    message: str
    resolved_profile_url: str | None = None
    claimed_url: str | None = None
    claimed_company: str | None = None
