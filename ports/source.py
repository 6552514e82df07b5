from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

from models import RawSubmission


@dataclass(frozen=True)
class MailSelector:
    """Selection policy for a mail source: by sender, by recency, by attachment presence."""

    sender: Optional[str] = None
    limit: int = 1
    attachments: bool = False


class MailSourcePort(Protocol):
    source_name: str

    def fetch(self, selector: MailSelector) -> List[RawSubmission]:
        ...
