from __future__ import annotations

from typing import Literal

from pydantic import computed_field

from models.extraction_result import ExtractionResult
from models.record import StoredRecord


ExtractionStatus = Literal["complete", "partial"]


def compute_extraction_status(
    name: str | None,
    company: str | None,
    phone: str | None,
    email: str | None,
    linkedin_url: str | None,
) -> ExtractionStatus:
    """complete iff name and company are known and at least one contact handle is."""
    has_handle = any(v is not None for v in (phone, email, linkedin_url))
    if name is not None and company is not None and has_handle:
        return "complete"
    return "partial"


class ExtractedProfile(StoredRecord):
    """Structured contact fields extracted from one RawSubmission.

    ``extraction_status`` is derived from the fields on every read; a stored or
    caller-supplied value is ignored.
    """

    submission_id: str
    name: str | None = None
    company: str | None = None
    designation: str | None = None
    phone: str | None = None
    email: str | None = None
    linkedin_url: str | None = None
    raw_text: str | None = None
    error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def extraction_status(self) -> ExtractionStatus:
        return compute_extraction_status(
            self.name, self.company, self.phone, self.email, self.linkedin_url
        )

    @classmethod
    def from_extraction(
        cls,
        submission_id: str,
        result: ExtractionResult,
        raw_text: str | None,
        error: str | None = None,
    ) -> "ExtractedProfile":
        return cls(
            submission_id=submission_id,
            raw_text=raw_text,
            error=error,
            **result.model_dump(),
        )
