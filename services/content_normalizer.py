from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Callable, Dict, Optional, Tuple, Union

from bs4 import BeautifulSoup

from errors import DecodeError, UnsupportedFormat
from models import RawSubmission


logger = logging.getLogger(__name__)

NO_CONTENT = "No content provided."

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLS = "application/vnd.ms-excel"


def decode_base64(data: Union[str, bytes]) -> Tuple[bytes, Optional[str]]:
    """Decode base64 text (standard or URL-safe, padding optional) or a ``data:`` URI.

    Returns (bytes, mime type from the data URI or None).
    """
    text = data.decode("ascii", errors="strict") if isinstance(data, bytes) else data
    mime: Optional[str] = None
    text = text.strip()
    if text.startswith("data:"):
        header, _, text = text.partition(",")
        meta = header[len("data:"):]
        if ";base64" not in meta:
            raise DecodeError("Only base64 data URIs are supported")
        mime = meta.split(";", 1)[0] or None
    text = text.replace("-", "+").replace("_", "/").replace("\n", "").replace("\r", "")
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, validate=True), mime
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e


def html_to_text(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    # Drop script/style
    for tag in soup(["script", "style", "noscript"]):
        tag.extract()
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


def _looks_like_html(text: str) -> bool:
    low = text[:2000].lower()
    return "<body" in low or "<html" in low


def _pdf_text(data: bytes) -> str:
    import fitz  # PyMuPDF

    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except Exception as e:
        raise DecodeError(f"Could not read PDF document: {e}") from e


def _docx_text(data: bytes) -> str:
    import docx

    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        raise DecodeError(f"Could not read Word document: {e}") from e
    parts = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            parts.append("\t".join(cell.text for cell in row.cells))
    return "\n".join(parts)


def _xls_text(data: bytes) -> str:
    import xlrd

    try:
        book = xlrd.open_workbook(file_contents=data)
    except Exception as e:
        raise DecodeError(f"Could not read spreadsheet: {e}") from e
    lines = []
    for sheet in book.sheets():
        for r in range(sheet.nrows):
            values = [str(v).strip() for v in sheet.row_values(r)]
            if any(values):
                lines.append("\t".join(values))
    return "\n".join(lines)


_BINARY_HANDLERS: Dict[str, Callable[[bytes], str]] = {
    PDF: _pdf_text,
    DOCX: _docx_text,
    XLS: _xls_text,
}


def supported_mime(mime_type: Optional[str]) -> bool:
    mt = (mime_type or "").split(";", 1)[0].strip().lower()
    return mt in _BINARY_HANDLERS or mt.startswith("text/")


class ContentNormalizer:
    """Reduce raw email text or an encoded document to a single plain-text string."""

    def normalize(
        self,
        content: Optional[str] = None,
        payload: Union[bytes, str, None] = None,
        mime_type: Optional[str] = "text/plain",
    ) -> str:
        """Return plain text, or the NO_CONTENT sentinel for empty input.

        ``payload`` may be raw bytes or base64 text / a data URI. Raises
        UnsupportedFormat for types outside the supported set and DecodeError
        for corrupt input.
        """
        mt = (mime_type or "text/plain").split(";", 1)[0].strip().lower()
        if payload is None:
            text = content or ""
            if mt == "text/html" or _looks_like_html(text):
                text = html_to_text(text)
            return self._finish(text)

        if isinstance(payload, str):
            payload, uri_mime = decode_base64(payload)
            if uri_mime:
                mt = uri_mime.lower()

        if mt.startswith("text/"):
            try:
                text = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(f"Text payload is not valid UTF-8: {e}") from e
            if mt == "text/html":
                text = html_to_text(text)
            return self._finish(text)

        handler = _BINARY_HANDLERS.get(mt)
        if handler is None:
            raise UnsupportedFormat(mime_type)
        if not payload:
            return NO_CONTENT
        text = self._finish(handler(payload))
        logger.info(
            "Normalized %s document (%d bytes)",
            mt,
            len(payload),
            extra={"step": "normalize", "status": "ok"},
        )
        return text

    def normalize_submission(self, submission: RawSubmission) -> str:
        return self.normalize(
            content=submission.content,
            payload=submission.payload,
            mime_type=submission.mime_type,
        )

    @staticmethod
    def _finish(text: str) -> str:
        text = (text or "").replace("\r\n", "\n").strip()
        return text if text else NO_CONTENT
