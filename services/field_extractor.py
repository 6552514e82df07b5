from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from config.settings import Settings, get_settings
from errors import InvalidResponse
from models import CONTACT_FIELDS, ExtractionResult
from ports import ExtractionBackendPort, LLMClientPort
from services.content_normalizer import NO_CONTENT


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a precise data extraction assistant. You read emails and documents "
    "and return only valid JSON."
)

# Backend spellings mapped onto the fixed schema; anything else is dropped
_KEY_ALIASES: Dict[str, str] = {
    "full_name": "name",
    "organization": "company",
    "title": "designation",
    "job_title": "designation",
    "mobile": "phone",
    "linkedin": "linkedin_url",
    "linkedinurl": "linkedin_url",
    "linkedin_profile": "linkedin_url",
}


def _extract_json(text: str) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    # Try raw parse first
    try:
        return json.loads(text)
    except ValueError:
        pass
    # Try fenced blocks
    m = re.search(r"```(?:json)?\n([\s\S]*?)\n```", text)
    if m:
        try:
            return json.loads(m.group(1))
        except ValueError:
            pass
    # Try to find first { ... } block
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except ValueError:
            pass
    return None


def _canonical_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        k = str(key).strip().lower().replace(" ", "_")
        k = _KEY_ALIASES.get(k, k)
        if k in CONTACT_FIELDS and k not in out:
            out[k] = value
    return out


def parse_extraction(content: str) -> ExtractionResult:
    """Parse a backend's textual answer into the fixed contact schema."""
    data = _extract_json(content)
    if not isinstance(data, dict):
        raise InvalidResponse(f"Extraction response is not a JSON object: {content[:200]!r}")
    try:
        return ExtractionResult.model_validate(_canonical_keys(data))
    except ValidationError as e:
        raise InvalidResponse(f"Extraction response does not match the contact schema: {e}") from e


class OpenAIExtractionBackend:
    """Hosted LLM backend; instructed to leave unknown fields null rather than guess."""

    provider = "openai"

    def __init__(self, llm: LLMClientPort) -> None:
        self.llm = llm

    @staticmethod
    def _create_extraction_prompt(text: str) -> str:
        return f"""Extract the sender's contact details from the text below and return ONLY a valid JSON object.

Text:
\"\"\"
{text}
\"\"\"

Extract the following fields:

1. name: Person's full name
2. company: Company or organization the person works for
3. designation: Job title / role
4. phone: Phone number as written
5. email: Email address
6. linkedin_url: LinkedIn profile URL (https://linkedin.com/in/...)

RULES:
- Use null for any field that is not stated in the text. Never guess or invent a value.
- Copy values as written; do not reformat phone numbers or URLs.

Return format (JSON only, no other text):
{{
    "name": "...",
    "company": "...",
    "designation": "...",
    "phone": "...",
    "email": "...",
    "linkedin_url": "..."
}}"""

    def extract(self, text: str) -> ExtractionResult:
        prompt = self._create_extraction_prompt(text)
        content = self.llm.chat_text(
            use_case="contact_extraction",
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            prompt_name="contact_extraction_v1",
        )
        return parse_extraction(content)


class RegexExtractionBackend:
    """Offline backend reading labeled lines such as ``Name: Jane Doe``."""

    provider = "regex"

    PATTERNS: Dict[str, re.Pattern] = {
        "name": re.compile(r"^\s*(?:full[ _]name|name)\s*[:\-]\s*([A-Za-z][A-Za-z .'\-]+?)\s*$", re.I | re.M),
        "company": re.compile(r"^\s*(?:company|organi[sz]ation)\s*[:\-]\s*([A-Za-z0-9][A-Za-z0-9 .,&'\-]*?)\s*$", re.I | re.M),
        "designation": re.compile(r"^\s*(?:designation|job[ _]title|title)\s*[:\-]\s*([A-Za-z][A-Za-z /&\-]*?)\s*$", re.I | re.M),
        "phone": re.compile(r"^\s*(?:phone|mobile|tel)\s*[:\-]?\s*(\+?[\d][\d\s().\-]{5,}\d)\s*$", re.I | re.M),
        "email": re.compile(r"^\s*e-?mail\s*[:\-]\s*([\w.+\-]+@[\w\-]+(?:\.[\w\-]+)+)\s*$", re.I | re.M),
        "linkedin_url": re.compile(r"(https?://(?:[a-z]{2,3}\.)?linkedin\.com/in/[A-Za-z0-9_\-%]+/?)", re.I),
    }

    def extract(self, text: str) -> ExtractionResult:
        found: Dict[str, Optional[str]] = {}
        for field, pattern in self.PATTERNS.items():
            m = pattern.search(text or "")
            found[field] = m.group(1).strip() if m else None
        return ExtractionResult.model_validate(found)


class FieldExtractor:
    """Turn normalized text into the fixed contact schema via an extraction backend.

    Raises ServiceUnavailable when the backend cannot be reached and
    InvalidResponse when its answer does not parse; neither is retried here.
    """

    def __init__(self, backend: ExtractionBackendPort) -> None:
        self.backend = backend

    def extract(self, text: str) -> ExtractionResult:
        if not text or text.strip() == NO_CONTENT:
            return ExtractionResult.empty()
        t0 = time.time()
        result = self.backend.extract(text)
        logger.info(
            "Extracted contact fields",
            extra={
                "step": "extract",
                "status": "ok",
                "provider": self.backend.provider,
                "duration_ms": int((time.time() - t0) * 1000),
            },
        )
        return result


def build_extraction_backend(settings: Optional[Settings] = None, llm: Optional[LLMClientPort] = None) -> ExtractionBackendPort:
    settings = settings or get_settings()
    provider = (settings.extraction_provider or "openai").lower()
    if provider == "regex":
        return RegexExtractionBackend()
    if provider == "openai":
        if llm is None:
            from services.llm_client import LLMClient
            llm = LLMClient(settings)
        return OpenAIExtractionBackend(llm)
    raise NotImplementedError(f"Extraction provider not implemented: {provider}")
