from __future__ import annotations

import logging
import os
import time
from email.utils import parseaddr, parsedate_to_datetime
from typing import Any, Dict, List, Optional, Tuple

from config.settings import Settings, get_settings
from errors import DecodeError, ServiceUnavailable
from models import RawSubmission, utc_now
from ports import MailSelector
from services.content_normalizer import decode_base64, supported_mime
from utils.call_logger import log_call


logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]


def _header(headers: List[Dict[str, str]], name: str) -> Optional[str]:
    for h in headers or []:
        if (h.get("name") or "").lower() == name.lower():
            return h.get("value")
    return None


def _walk(part: Dict[str, Any]):
    yield part
    for child in part.get("parts") or []:
        yield from _walk(child)


def _decode_text(data: str) -> str:
    raw, _ = decode_base64(data)
    return raw.decode("utf-8", errors="replace")


def pick_body(payload: Dict[str, Any]) -> Tuple[Optional[str], str]:
    """Return (body text, mime type); text/plain wins over text/html."""
    found: Dict[str, str] = {}
    for part in _walk(payload):
        mt = (part.get("mimeType") or "").lower()
        data = (part.get("body") or {}).get("data")
        if part.get("filename") or not data:
            continue
        if mt in ("text/plain", "text/html") and mt not in found:
            found[mt] = _decode_text(data)
    for mt in ("text/plain", "text/html"):
        if mt in found:
            return found[mt], mt
    return None, "text/plain"


class GmailSource:
    """Read submissions from a Gmail mailbox through the Gmail REST API.

    Authorization uses a pre-provisioned authorized-user token file
    (``GMAIL_TOKEN_PATH``); the consent flow itself is out of scope.
    """

    source_name = "gmail"

    def __init__(self, settings: Optional[Settings] = None, service: Any = None) -> None:
        self.settings = settings or get_settings()
        self._svc = service

    def _service(self) -> Any:
        if self._svc is not None:
            return self._svc
        from google.oauth2.credentials import Credentials
        from googleapiclient.discovery import build

        token_path = self.settings.gmail_token_path
        if not os.path.exists(token_path):
            raise ServiceUnavailable(f"Gmail token file not found: {token_path}")
        creds = Credentials.from_authorized_user_file(token_path, SCOPES)
        self._svc = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return self._svc

    @staticmethod
    def build_query(selector: MailSelector) -> str:
        terms = []
        if selector.sender:
            terms.append(f"from:{selector.sender}")
        if selector.attachments:
            terms.append("has:attachment")
        return " ".join(terms)

    def fetch(self, selector: MailSelector) -> List[RawSubmission]:
        from googleapiclient.errors import HttpError

        t0 = time.time()
        try:
            messages = self._fetch_messages(selector)
            out: List[RawSubmission] = []
            for msg in messages:
                out.extend(self._to_submissions(msg, selector))
        except HttpError as e:
            self._log("error", t0, str(e))
            raise ServiceUnavailable(f"Failed to fetch email from Gmail: {e}") from e
        self._log("ok", t0, None)
        logger.info(
            "Fetched %d submission(s) from Gmail",
            len(out),
            extra={"step": "fetch", "status": "ok", "provider": self.source_name},
        )
        return out

    def _fetch_messages(self, selector: MailSelector) -> List[Dict[str, Any]]:
        users = self._service().users()
        # Gmail lists newest first
        resp = users.messages().list(
            userId="me", q=self.build_query(selector), maxResults=max(1, selector.limit)
        ).execute()
        refs = resp.get("messages") or []
        return [
            users.messages().get(userId="me", id=ref["id"], format="full").execute()
            for ref in refs[: selector.limit]
            if ref.get("id")
        ]

    def _to_submissions(self, msg: Dict[str, Any], selector: MailSelector) -> List[RawSubmission]:
        payload = msg.get("payload") or {}
        headers = payload.get("headers") or []
        sender = parseaddr(_header(headers, "From") or "")[1].lower() or (selector.sender or None)
        subject = _header(headers, "Subject")
        received_at = utc_now()
        date_header = _header(headers, "Date")
        if date_header:
            try:
                received_at = parsedate_to_datetime(date_header)
            except (TypeError, ValueError):
                pass

        common = dict(source_email=sender, subject=subject, received_at=received_at)
        out: List[RawSubmission] = []
        body, body_mime = pick_body(payload)
        if body and body.strip():
            out.append(RawSubmission(content=body, mime_type=body_mime, source_ref=msg.get("id"), **common))

        for part in _walk(payload):
            filename = part.get("filename")
            mt = (part.get("mimeType") or "").lower()
            if not filename or mt.startswith("text/") or not supported_mime(mt):
                continue
            data = (part.get("body") or {}).get("data")
            attachment_id = (part.get("body") or {}).get("attachmentId")
            if not data and attachment_id:
                data = (
                    self._service().users().messages().attachments()
                    .get(userId="me", messageId=msg["id"], id=attachment_id)
                    .execute()
                    .get("data")
                )
            if not data:
                continue
            try:
                raw, _ = decode_base64(data)
            except DecodeError as e:
                logger.warning(
                    "Skipping attachment %s of message %s",
                    filename,
                    msg.get("id"),
                    extra={"step": "fetch", "status": "skipped", "provider": self.source_name, "error": str(e)},
                )
                continue
            out.append(RawSubmission(
                payload=raw,
                mime_type=mt,
                source_ref=f"{msg.get('id')}/{filename}",
                **common,
            ))
        return out

    def _log(self, status: str, t0: float, error: Optional[str]) -> None:
        log_call(
            caller="gmail_source.fetch",
            provider=self.source_name,
            operation="mail_fetch",
            duration_ms=int((time.time() - t0) * 1000),
            status=status,
            error=error,
        )
