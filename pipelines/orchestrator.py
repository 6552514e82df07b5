from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional

from config.settings import Settings, get_settings
from models import ExtractedProfile, RawSubmission
from pipelines.runner import Pipeline, RunContext
from pipelines.steps import (
    AutoPromote,
    CheckRegisteredSender,
    ExtractFields,
    NormalizeContent,
    PersistProfile,
    PersistSubmission,
    ScoreProfile,
    VerifyLinkedIn,
)
from ports import LLMClientPort, RecordStorePort
from services.content_normalizer import ContentNormalizer
from services.deliverability_scorer import DeliverabilityScorer
from services.failure_report import record_failure
from services.field_extractor import FieldExtractor, build_extraction_backend
from services.linkedin_lookup import build_profile_lookup
from services.linkedin_verifier import LinkedInVerifier
from services.mail_deliverability import build_deliverability_checker


logger = logging.getLogger(__name__)


class ProfilePipeline:
    """Submission intake: synchronous extraction, background verification.

    ``process`` persists the submission and its ExtractedProfile and returns
    the profile. Scoring, LinkedIn verification and auto-promotion run as one
    sequential task on a thread pool; failures there are logged and recorded
    as ``continuation`` ValidationFailures, and the task's Future carries the
    exception too.
    """

    def __init__(
        self,
        store: RecordStorePort,
        normalizer: ContentNormalizer,
        extractor: FieldExtractor,
        scorer: DeliverabilityScorer,
        verifier: LinkedInVerifier,
        *,
        linkedin_enabled: bool = True,
        promote_policy: str = "any",
        min_score: float = 0.6,
        require_registered_sender: bool = False,
        workers: int = 2,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.store = store
        self.intake = Pipeline([
            CheckRegisteredSender(store, enabled=require_registered_sender),
            PersistSubmission(store),
            NormalizeContent(normalizer),
            ExtractFields(extractor),
            PersistProfile(store),
        ])
        self.continuation = Pipeline([
            ScoreProfile(scorer, store),
            VerifyLinkedIn(verifier, store, enabled=linkedin_enabled),
            AutoPromote(store, policy=promote_policy, min_score=min_score),
        ])
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, workers), thread_name_prefix="continuation"
        )
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def process(self, raw: RawSubmission) -> ExtractedProfile:
        """Persist and extract ``raw``; schedule verification unless extraction failed.

        Raises UnregisteredSender when the sender check is enabled and fails.
        """
        ctx = self.intake.run(RunContext(submission=raw))
        if ctx.failure is None:
            self.schedule(ctx)
        return ctx.profile

    def schedule(self, ctx: RunContext) -> Future:
        future = self._executor.submit(self._continue, ctx)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)
        return future

    def _continue(self, ctx: RunContext) -> RunContext:
        try:
            return self.continuation.run(ctx)
        except Exception as e:
            logger.exception(
                "Verification continuation failed for profile %s",
                ctx.profile.id,
                extra={"step": "continuation", "status": "failed", "subject": ctx.profile.id, "error": str(e)},
            )
            record_failure(self.store, "continuation", ctx.profile.id, f"{type(e).__name__}: {e}")
            raise

    def wait_pending(self, timeout: Optional[float] = None) -> bool:
        """Block until scheduled continuations finish; False if ``timeout`` expired first."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self, timeout: Optional[float] = None) -> None:
        self.wait_pending(timeout)
        self._executor.shutdown(wait=timeout is None)


def build_pipeline(
    store: RecordStorePort,
    settings: Optional[Settings] = None,
    llm: Optional[LLMClientPort] = None,
) -> ProfilePipeline:
    """Wire a ProfilePipeline from settings with the configured backends."""
    settings = settings or get_settings()
    return ProfilePipeline(
        store,
        ContentNormalizer(),
        FieldExtractor(build_extraction_backend(settings, llm)),
        DeliverabilityScorer(build_deliverability_checker(settings)),
        LinkedInVerifier(build_profile_lookup(settings)),
        linkedin_enabled=settings.linkedin_verification_enabled,
        promote_policy=settings.auto_promote_policy,
        min_score=settings.auto_promote_min_score,
        require_registered_sender=settings.require_registered_sender,
        workers=settings.pipeline_workers,
    )
