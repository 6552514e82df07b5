from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from models import Deliverability, ExtractionResult


class ExtractionBackendPort(Protocol):
    """Text-understanding service: plain text in, fixed contact schema out."""

    provider: str

    def extract(self, text: str) -> ExtractionResult:
        ...


@dataclass(frozen=True)
class Employment:
    company: Optional[str]
    title: Optional[str] = None


@dataclass(frozen=True)
class LookupProfile:
    """One profile returned by a lookup service; employment is most recent first."""

    profile_url: Optional[str]
    full_name: Optional[str] = None
    employment: List[Employment] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


class ProfileLookupPort(Protocol):
    provider: str

    def lookup(self, identifier: str) -> List[LookupProfile]:
        """Return zero or more profiles; raise ApiLimitReached on quota conditions."""
        ...


@dataclass(frozen=True)
class DeliverabilityVerdict:
    deliverability: Deliverability
    reason: str


class DeliverabilityPort(Protocol):
    provider: str

    def check(self, email: str) -> DeliverabilityVerdict:
        ...
