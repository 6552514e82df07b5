from __future__ import annotations

from pipelines.runner import RunContext
from ports import RecordStorePort
from services.deliverability_scorer import DeliverabilityScorer


class ScoreProfile:
    def __init__(self, scorer: DeliverabilityScorer, store: RecordStorePort) -> None:
        self.scorer = scorer
        self.store = store

    def run(self, ctx: RunContext) -> RunContext:
        profile = ctx.profile
        result = self.scorer.score(profile.email, profile.company, profile_id=profile.id)
        self.store.add("verification_results", result.model_dump())
        ctx.verification = result
        return ctx
