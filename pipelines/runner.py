from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from models import (
    ExtractedProfile,
    ExtractionResult,
    LinkedInVerification,
    RawSubmission,
    VerificationResult,
)
from utils.logging_setup import init_logging


@dataclass
class RunContext:
    submission: Optional[RawSubmission] = None
    text: Optional[str] = None
    extraction: Optional[ExtractionResult] = None
    profile: Optional[ExtractedProfile] = None
    verification: Optional[VerificationResult] = None
    linkedin: Optional[LinkedInVerification] = None
    # Set by the first failing extraction stage: (stage, message)
    failure: Optional[tuple] = None
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            ctx = step.run(ctx)
        return ctx
