from __future__ import annotations

from models import ExtractedProfile
from services.approval import approve_profiles, find_verified, promote_profile


def _stored_profile(store, **fields):
    profile = ExtractedProfile(submission_id="s1", **fields)
    store.add("extracted_profiles", profile.model_dump())
    return profile


def test_approve_is_idempotent(store):
    profile = _stored_profile(store, name="Jane", company="Acme", email="jane@acme.com")

    first = approve_profiles(store, [profile.id])
    second = approve_profiles(store, [profile.id, profile.id])

    assert first == {profile.id: "promoted"}
    assert second == {profile.id: "already_verified"}
    rows = store.find("verified_profiles", profile_id=profile.id)
    assert len(rows) == 1
    assert rows[0]["promoted_by"] == "manual"
    assert rows[0]["verification_details"] == "Manually approved by reviewer."


def test_approve_reports_missing_profiles(store):
    profile = _stored_profile(store, name="Jane")
    outcomes = approve_profiles(store, ["nope", profile.id], details="checked by phone")
    assert outcomes == {"nope": "not_found", profile.id: "promoted"}
    assert find_verified(store, profile.id).verification_details == "checked by phone"


def test_manual_after_auto_keeps_single_record(store):
    profile = _stored_profile(store, name="Jane", company="Acme")
    assert promote_profile(store, profile, "auto", promoted_by="auto") == "promoted"
    assert approve_profiles(store, [profile.id]) == {profile.id: "already_verified"}
    assert find_verified(store, profile.id).promoted_by == "auto"
