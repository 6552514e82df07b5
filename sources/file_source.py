from __future__ import annotations

import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from models import RawSubmission
from ports import MailSelector


def guess_mime(path: Path, default: str = "text/plain") -> str:
    mt, _ = mimetypes.guess_type(str(path))
    return mt or default


class FileSource:
    """Local files as submissions; text/* files become text, everything else binary.

    Files carry no sender of their own: ``sender`` (or the selector's) is used.
    Newest files (by mtime) come first.
    """

    source_name = "file"

    def __init__(self, paths: Iterable[Path], sender: Optional[str] = None, mime_type: Optional[str] = None) -> None:
        self.paths = [Path(p) for p in paths]
        self.sender = sender
        self.mime_type = mime_type

    def fetch(self, selector: MailSelector) -> List[RawSubmission]:
        paths = sorted(self.paths, key=lambda p: p.stat().st_mtime, reverse=True)
        out: List[RawSubmission] = []
        for path in paths:
            mt = self.mime_type or guess_mime(path)
            is_text = mt.startswith("text/")
            if selector.attachments and is_text:
                continue
            received_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            common = dict(
                source_email=(selector.sender or self.sender),
                subject=path.name,
                mime_type=mt,
                source_ref=str(path),
                received_at=received_at,
            )
            if is_text:
                out.append(RawSubmission(content=path.read_text(encoding="utf-8", errors="replace"), **common))
            else:
                out.append(RawSubmission(payload=path.read_bytes(), **common))
            if len(out) >= selector.limit:
                break
        return out
