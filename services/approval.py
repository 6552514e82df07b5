from __future__ import annotations

import logging
from typing import Dict, Iterable, Literal, Optional

from errors import DuplicateRecord
from models import ExtractedProfile, VerifiedProfile
from ports import RecordStorePort


logger = logging.getLogger(__name__)

ApprovalOutcome = Literal["promoted", "already_verified", "not_found"]


def find_verified(store: RecordStorePort, profile_id: str) -> Optional[VerifiedProfile]:
    rows = store.find("verified_profiles", profile_id=profile_id)
    return VerifiedProfile.model_validate(rows[0]) if rows else None


def promote_profile(
    store: RecordStorePort,
    profile: ExtractedProfile,
    details: str,
    promoted_by: Literal["auto", "manual"] = "manual",
) -> ApprovalOutcome:
    """Create a VerifiedProfile unless one already exists for ``profile``."""
    if find_verified(store, profile.id) is not None:
        return "already_verified"
    record = VerifiedProfile.promote(profile, details, promoted_by)
    try:
        store.add("verified_profiles", record.model_dump())
    except DuplicateRecord:
        # Lost a race with a concurrent promotion of the same profile
        return "already_verified"
    logger.info(
        "Promoted profile %s to verified profiles",
        profile.id,
        extra={"step": "promote", "status": promoted_by, "subject": profile.id},
    )
    return "promoted"


def approve_profiles(
    store: RecordStorePort,
    profile_ids: Iterable[str],
    details: str = "Manually approved by reviewer.",
) -> Dict[str, ApprovalOutcome]:
    """Reviewer approval of one or more extracted profiles (idempotent per profile)."""
    outcomes: Dict[str, ApprovalOutcome] = {}
    for profile_id in profile_ids:
        if profile_id in outcomes:
            continue
        row = store.get("extracted_profiles", profile_id)
        if row is None:
            outcomes[profile_id] = "not_found"
            continue
        outcomes[profile_id] = promote_profile(
            store, ExtractedProfile.model_validate(row), details, promoted_by="manual"
        )
    return outcomes
