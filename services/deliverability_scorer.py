from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from errors import PipelineError
from models import Deliverability, VerificationResult
from ports import DeliverabilityPort


logger = logging.getLogger(__name__)

DOMAIN_WEIGHT = 0.4
DELIVERABILITY_WEIGHTS = {"DELIVERABLE": 0.6, "RISKY": 0.2, "UNDELIVERABLE": 0.0}

_HOSTNAME = re.compile(r"^[\w.\-]+$")


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def email_domain(email: str) -> Optional[str]:
    if "@" not in email:
        return None
    domain = email.rsplit("@", 1)[1].strip().lower()
    return domain or None


def company_domain(company: str) -> Optional[str]:
    """Treat the company name as a hostname: whitespace removed, lower-cased, no ``www.``."""
    slug = re.sub(r"\s+", "", company).lower()
    if not slug:
        return None
    try:
        host = urlparse(f"http://{slug}").hostname
    except ValueError:
        return None
    if not host or not _HOSTNAME.match(host):
        return None
    if host.startswith("www."):
        host = host[len("www."):]
    return host or None


class DeliverabilityScorer:
    """Score an email/company pair from domain match and a deliverability verdict.

    The reason trail is appended step by step so the stored text is
    reproducible. Deliverability failures degrade to RISKY with no
    contribution; they never abort scoring.
    """

    def __init__(self, checker: DeliverabilityPort) -> None:
        self.checker = checker

    def score(self, email: Optional[str], company: Optional[str], profile_id: str = "") -> VerificationResult:
        reasons: List[str] = []
        total = 0.0

        # 1. Domain-company match
        domain_match = False
        if email and company:
            e_domain = email_domain(email)
            c_domain = company_domain(company)
            if not e_domain:
                reasons.append(f"Could not read a domain from email {email!r}.")
            elif not c_domain:
                reasons.append("Could not parse company name as a valid domain.")
            elif c_domain in e_domain:
                domain_match = True
                total += DOMAIN_WEIGHT
                reasons.append("Email domain matches company name.")
            else:
                reasons.append(f"Email domain ({e_domain}) does not match company domain ({c_domain}).")
        else:
            reasons.append("Missing email or company for domain match check.")

        # 2. Email deliverability
        deliverability: Deliverability = "RISKY"
        if email:
            try:
                verdict = self.checker.check(email)
            except PipelineError as e:
                logger.warning(
                    "Deliverability check failed; defaulting to RISKY",
                    extra={"step": "score", "status": "degraded", "provider": self.checker.provider, "error": str(e)},
                )
                reasons.append(f"Deliverability check unavailable ({e}); treated as risky with no contribution.")
            else:
                deliverability = verdict.deliverability
                total += DELIVERABILITY_WEIGHTS[deliverability]
                reasons.append(verdict.reason)
        else:
            reasons.append("Missing email for deliverability check.")

        outcome = VerificationResult(
            profile_id=profile_id,
            score=clamp(total),
            domain_match=domain_match,
            deliverability=deliverability,
            reason=" ".join(r.strip() for r in reasons if r.strip()),
        )
        logger.info(
            "Scored profile %.2f",
            outcome.score,
            extra={"step": "score", "status": deliverability, "provider": self.checker.provider, "subject": profile_id or "-"},
        )
        return outcome
