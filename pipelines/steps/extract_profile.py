from __future__ import annotations

import logging

from errors import DecodeError, InvalidResponse, ServiceUnavailable, UnsupportedFormat
from models import ExtractedProfile, ExtractionResult
from pipelines.runner import RunContext
from ports import RecordStorePort
from services.content_normalizer import ContentNormalizer
from services.failure_report import record_failure
from services.field_extractor import FieldExtractor


logger = logging.getLogger(__name__)


class NormalizeContent:
    def __init__(self, normalizer: ContentNormalizer) -> None:
        self.normalizer = normalizer

    def run(self, ctx: RunContext) -> RunContext:
        try:
            ctx.text = self.normalizer.normalize_submission(ctx.submission)
        except (UnsupportedFormat, DecodeError) as e:
            ctx.failure = ("normalize", str(e))
            # Keep whatever text the submission carried for manual inspection
            ctx.text = ctx.submission.content or None
        return ctx


class ExtractFields:
    def __init__(self, extractor: FieldExtractor) -> None:
        self.extractor = extractor

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.failure is not None:
            return ctx
        try:
            ctx.extraction = self.extractor.extract(ctx.text or "")
        except (ServiceUnavailable, InvalidResponse) as e:
            ctx.failure = ("extract", f"{type(e).__name__}: {e}")
        return ctx


class PersistProfile:
    """Persist the ExtractedProfile; failed extractions become partial, all-null profiles."""

    def __init__(self, store: RecordStorePort) -> None:
        self.store = store

    def run(self, ctx: RunContext) -> RunContext:
        sub = ctx.submission
        error = None
        extraction = ctx.extraction
        if ctx.failure is not None:
            stage, error = ctx.failure
            record_failure(self.store, stage, sub.id, error)
            extraction = ExtractionResult.empty()
        profile = ExtractedProfile.from_extraction(
            submission_id=sub.id,
            result=extraction or ExtractionResult.empty(),
            raw_text=ctx.text,
            error=error,
        )
        self.store.add("extracted_profiles", profile.model_dump())
        ctx.profile = profile
        logger.info(
            "Stored extracted profile %s (%s)",
            profile.id,
            profile.extraction_status,
            extra={"step": "extract", "status": "failed" if error else profile.extraction_status, "subject": profile.id},
        )
        return ctx
