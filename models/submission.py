from __future__ import annotations

from datetime import datetime

from pydantic import Field

from models.record import StoredRecord, utc_now


class RawSubmission(StoredRecord):
    """One unit of unprocessed input: an email body or a MIME-typed document.

    Text submissions carry ``content``; binary documents carry ``payload``
    (raw bytes, or base64 text as delivered by mail APIs) plus ``mime_type``.
    """

    source_email: str | None = None
    content: str | None = None
    payload: bytes | None = None
    mime_type: str = "text/plain"
    subject: str | None = None
    source_ref: str | None = None
    received_at: datetime = Field(default_factory=utc_now)

    @property
    def is_binary(self) -> bool:
        return self.payload is not None
