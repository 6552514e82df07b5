from __future__ import annotations

import logging
import unicodedata
from typing import Optional
from urllib.parse import unquote, urlparse

from errors import ApiLimitReached, InvalidUrl, PipelineError
from models import LinkedInVerification
from ports import ProfileLookupPort


logger = logging.getLogger(__name__)


def resolve_profile_identifier(url: Optional[str]) -> str:
    """Return the path segment after ``/in/`` of a LinkedIn profile URL.

    Raises InvalidUrl when no identifier can be resolved.
    """
    if not url or not isinstance(url, str):
        raise InvalidUrl(url)
    text = url.strip()
    if "://" not in text:
        text = f"https://{text}"
    try:
        parsed = urlparse(text)
    except ValueError as e:
        raise InvalidUrl(url) from e
    host = (parsed.netloc or "").lower()
    if "linkedin.com" not in host:
        raise InvalidUrl(url)
    parts = [p for p in (parsed.path or "").split("/") if p]
    if "in" not in parts:
        raise InvalidUrl(url)
    idx = parts.index("in")
    if idx + 1 >= len(parts):
        raise InvalidUrl(url)
    slug = unicodedata.normalize("NFKC", unquote(parts[idx + 1])).strip()
    # Remove invisible characters occasionally present
    slug = slug.replace("\u200b", "").replace("\u200c", "").replace("\u200d", "")
    if not slug:
        raise InvalidUrl(url)
    return slug


def company_matches(claimed: str, found: Optional[str]) -> bool:
    """Case-insensitive containment of the claimed company in the listed employer."""
    if not claimed or not found:
        return False
    return claimed.strip().casefold() in found.strip().casefold()


class LinkedInVerifier:
    """Cross-check a claimed company against a LinkedIn profile's employment history.

    Every outcome is returned as a LinkedInVerification; lookup failures are
    reported through its status, never raised.
    """

    def __init__(self, lookup: ProfileLookupPort) -> None:
        self.lookup = lookup

    def verify(self, claimed_url: Optional[str], claimed_company: Optional[str], profile_id: Optional[str] = None) -> LinkedInVerification:
        def _result(status: str, message: str, resolved: Optional[str] = None) -> LinkedInVerification:
            logger.info(
                "LinkedIn verification %s",
                status,
                extra={"step": "linkedin", "status": status, "provider": self.lookup.provider, "subject": profile_id or "-"},
            )
            return LinkedInVerification(
                profile_id=profile_id,
                status=status,
                message=message,
                resolved_profile_url=resolved,
                claimed_url=claimed_url,
                claimed_company=claimed_company,
            )

        try:
            identifier = resolve_profile_identifier(claimed_url)
        except InvalidUrl as e:
            return _result("error", str(e))

        try:
            profiles = self.lookup.lookup(identifier)
        except ApiLimitReached as e:
            return _result("api_limit_reached", str(e) or "Profile lookup quota reached")
        except PipelineError as e:
            return _result("error", f"Profile lookup failed: {e}")

        if not profiles:
            return _result("profile_not_found", f"No LinkedIn profile found for {identifier}.")

        claimed = claimed_company or ""
        for profile in profiles:
            for job in profile.employment:
                if company_matches(claimed, job.company):
                    return _result(
                        "verified",
                        f"Company name matched on LinkedIn profile ({job.company}).",
                        profile.profile_url or claimed_url,
                    )

        first = profiles[0]
        latest = next((j.company for j in first.employment if j.company), None)
        return _result(
            "company_mismatch",
            f"Company mismatch. Claimed: {claimed}, LinkedIn: {latest or 'no employer listed'}.",
            first.profile_url or claimed_url,
        )
