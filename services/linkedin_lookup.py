from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from config.settings import Settings, get_settings
from errors import ApiLimitReached, ServiceUnavailable
from ports import Employment, LookupProfile, ProfileLookupPort
from utils.call_logger import log_call


logger = logging.getLogger(__name__)


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def parse_profile_item(item: Dict[str, Any]) -> LookupProfile:
    """Map one scraper dataset item onto LookupProfile.

    Tolerates flat items and items nesting identity under ``basic_info``.
    """
    basic = item.get("basic_info") if isinstance(item.get("basic_info"), dict) else {}
    merged = {**item, **basic}
    url = _first(merged, "profile_url", "profileUrl", "linkedinUrl", "linkedin_url", "url")
    if not url:
        ident = _first(merged, "public_identifier", "publicIdentifier", "username")
        url = f"https://www.linkedin.com/in/{ident}" if ident else None
    name = _first(merged, "fullname", "fullName", "full_name", "name")
    if not name:
        parts = [merged.get("first_name") or merged.get("firstName"), merged.get("last_name") or merged.get("lastName")]
        name = " ".join(p for p in parts if p) or None

    employment: List[Employment] = []
    raw_exp = _first(item, "experience", "experiences", "positions") or []
    if isinstance(raw_exp, list):
        for entry in raw_exp:
            if not isinstance(entry, dict):
                continue
            company = _first(entry, "company", "companyName", "company_name")
            if isinstance(company, dict):
                company = _first(company, "name", "companyName")
            employment.append(Employment(
                company=str(company) if company else None,
                title=_first(entry, "title", "position", "jobTitle"),
            ))
    current = _first(merged, "current_company", "currentCompany", "company")
    if isinstance(current, dict):
        current = _first(current, "name", "companyName")
    if current and not any(e.company == current for e in employment):
        # Current company first: employment is most recent first
        employment.insert(0, Employment(company=str(current), title=_first(merged, "headline", "title")))
    return LookupProfile(profile_url=url, full_name=name, employment=employment, raw=item)


class ApifyProfileLookup:
    """Profile lookup through an Apify LinkedIn scraper actor (synchronous run)."""

    provider = "apify"

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.base_url = self.settings.apify_base_url.rstrip("/")

    def _run_url(self) -> str:
        return f"{self.base_url}/acts/{self.settings.apify_actor_id}/run-sync-get-dataset-items"

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.text[:300]
        err = data.get("error") if isinstance(data, dict) else None
        if isinstance(err, dict):
            return f"{err.get('type', 'error')}: {err.get('message', '')}".strip()
        return str(data)[:300]

    def lookup(self, identifier: str) -> List[LookupProfile]:
        headers = {"Authorization": f"Bearer {self.settings.apify_api_token}"}
        body = {"usernames": [identifier]}
        t0 = time.time()
        try:
            resp = self.session.post(
                self._run_url(),
                json=body,
                headers=headers,
                params={"format": "json", "clean": "true"},
                timeout=self.settings.http_timeout_seconds,
            )
        except requests.Timeout as e:
            self._log("error", t0, f"timeout: {e}")
            raise ServiceUnavailable(f"Profile lookup timed out after {self.settings.http_timeout_seconds}s") from e
        except requests.RequestException as e:
            self._log("error", t0, str(e))
            raise ServiceUnavailable(f"Profile lookup request failed: {e}") from e

        if resp.status_code in (402, 429):
            message = self._error_message(resp)
            self._log("limit", t0, message)
            logger.warning(
                "Profile lookup quota reached (HTTP %s)",
                resp.status_code,
                extra={"step": "linkedin", "status": "limit", "provider": self.provider, "error": message},
            )
            raise ApiLimitReached(message or f"HTTP {resp.status_code}")
        if resp.status_code >= 400:
            message = self._error_message(resp)
            if "limit" in message.lower():
                self._log("limit", t0, message)
                raise ApiLimitReached(message)
            self._log("error", t0, message)
            raise ServiceUnavailable(f"Profile lookup failed with status {resp.status_code}: {message}")

        try:
            items = resp.json()
        except ValueError as e:
            self._log("error", t0, "non-JSON response")
            raise ServiceUnavailable("Profile lookup returned a non-JSON response") from e
        if not isinstance(items, list):
            raise ServiceUnavailable(f"Invalid profile lookup response (expected list, got {type(items).__name__})")
        self._log("ok", t0, None, count=len(items))
        return [parse_profile_item(i) for i in items if isinstance(i, dict)]

    def _log(self, status: str, t0: float, error: Optional[str], count: Optional[int] = None) -> None:
        log_call(
            caller="linkedin_lookup.apify",
            provider=self.provider,
            operation="profile_lookup",
            duration_ms=int((time.time() - t0) * 1000),
            status=status,
            error=error,
            extras={"actor": self.settings.apify_actor_id, "items": count},
        )


class SandboxProfileLookup:
    """Deterministic offline lookup.

    Identifiers containing "unknown" have no profile; otherwise the profile's
    only employer is the identifier's first token + "Corp" ("jane-doe" → "JaneCorp").
    """

    provider = "sandbox"

    def __init__(self, limit_reached: bool = False, profiles: Optional[Dict[str, LookupProfile]] = None) -> None:
        self.limit_reached = limit_reached
        self.profiles = dict(profiles or {})

    def lookup(self, identifier: str) -> List[LookupProfile]:
        if self.limit_reached:
            raise ApiLimitReached("LinkedIn API limit reached")
        if identifier in self.profiles:
            return [self.profiles[identifier]]
        if "unknown" in identifier.lower():
            return []
        first = identifier.replace("_", "-").split("-")[0]
        return [LookupProfile(
            profile_url=f"https://www.linkedin.com/in/{identifier}",
            full_name=" ".join(p.capitalize() for p in identifier.split("-") if p.isalpha()) or None,
            employment=[Employment(company=f"{first.capitalize()}Corp")],
        )]


def build_profile_lookup(settings: Optional[Settings] = None) -> ProfileLookupPort:
    settings = settings or get_settings()
    provider = (settings.linkedin_lookup_provider or "apify").lower()
    if provider == "sandbox":
        return SandboxProfileLookup(limit_reached=settings.sandbox_linkedin_limit_reached)
    if provider == "apify":
        return ApifyProfileLookup(settings)
    raise NotImplementedError(f"Profile lookup provider not implemented: {provider}")
