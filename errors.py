"""Exception taxonomy for the extraction and verification pipeline.

``profile_not_found`` and ``company_mismatch`` are valid negative results and
are reported as LinkedIn verification statuses, not raised.
"""
from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures raised by pipeline components."""


class UnsupportedFormat(PipelineError):
    def __init__(self, mime_type: str | None):
        self.mime_type = mime_type
        super().__init__(f"Unsupported content type: {mime_type or 'unknown'}")


class DecodeError(PipelineError):
    """Content was tagged with a supported type but could not be decoded."""


class ServiceUnavailable(PipelineError):
    """An external service could not be reached, timed out, or returned a transport error."""


class InvalidResponse(PipelineError):
    """An external service answered, but the answer does not fit the expected schema."""


class InvalidUrl(PipelineError):
    def __init__(self, url: str | None):
        self.url = url
        super().__init__(f"Could not resolve a LinkedIn profile identifier from URL: {url!r}")


class ApiLimitReached(PipelineError):
    """The profile-lookup service reported a rate or quota condition."""


class DuplicateRecord(PipelineError):
    """A record violates a collection's uniqueness key."""


class UnregisteredSender(PipelineError):
    def __init__(self, sender: str | None):
        self.sender = sender
        super().__init__(f"Sender is not registered: {sender or 'unknown'}")
