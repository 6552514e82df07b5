from __future__ import annotations

import logging

from pipelines.runner import RunContext
from ports import RecordStorePort
from services.failure_report import record_failure
from services.linkedin_verifier import LinkedInVerifier


logger = logging.getLogger(__name__)


class VerifyLinkedIn:
    """Run the LinkedIn check when the profile names both a URL and a company."""

    def __init__(self, verifier: LinkedInVerifier, store: RecordStorePort, enabled: bool = True) -> None:
        self.verifier = verifier
        self.store = store
        self.enabled = enabled

    def run(self, ctx: RunContext) -> RunContext:
        profile = ctx.profile
        if not self.enabled:
            return ctx
        if not (profile.linkedin_url and profile.company):
            logger.info(
                "Skipping LinkedIn verification for %s: missing URL or company",
                profile.id,
                extra={"step": "linkedin", "status": "skipped", "subject": profile.id},
            )
            return ctx
        result = self.verifier.verify(profile.linkedin_url, profile.company, profile_id=profile.id)
        self.store.add("linkedin_verifications", result.model_dump())
        if result.status in ("error", "api_limit_reached"):
            record_failure(self.store, "linkedin", profile.id, f"{result.status}: {result.message}")
        ctx.linkedin = result
        return ctx
