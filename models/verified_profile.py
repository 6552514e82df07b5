from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from models.extracted_profile import ExtractedProfile
from models.record import StoredRecord, utc_now


class VerifiedProfile(StoredRecord):
    """A profile promoted as trustworthy, automatically or by a reviewer."""

    profile_id: str
    name: str | None = None
    company: str | None = None
    designation: str | None = None
    phone: str | None = None
    email: str | None = None
    linkedin_url: str | None = None
    verified: bool = True
    verification_details: str = ""
    promoted_by: Literal["auto", "manual"] = "manual"
    promoted_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def promote(
        cls,
        profile: ExtractedProfile,
        details: str,
        promoted_by: Literal["auto", "manual"],
    ) -> "VerifiedProfile":
        return cls(
            profile_id=profile.id,
            name=profile.name,
            company=profile.company,
            designation=profile.designation,
            phone=profile.phone,
            email=profile.email,
            linkedin_url=profile.linkedin_url,
            verification_details=details,
            promoted_by=promoted_by,
        )
