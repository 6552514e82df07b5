from __future__ import annotations

import time
from typing import Optional

import requests

from config.settings import Settings, get_settings
from errors import InvalidResponse, ServiceUnavailable
from ports import DeliverabilityPort, DeliverabilityVerdict
from utils.call_logger import log_call


VERDICTS = ("DELIVERABLE", "UNDELIVERABLE", "RISKY")


class SandboxDeliverabilityChecker:
    """Offline verdicts keyed on markers in the address ("undeliverable", "risky")."""

    provider = "sandbox"

    def check(self, email: str) -> DeliverabilityVerdict:
        low = email.lower()
        if "undeliverable" in low:
            return DeliverabilityVerdict("UNDELIVERABLE", "Email address does not exist.")
        if "risky" in low:
            return DeliverabilityVerdict("RISKY", "Accept-all domain, cannot confirm validity.")
        return DeliverabilityVerdict("DELIVERABLE", "Email address is valid and can receive mail.")


class HttpDeliverabilityChecker:
    """Mail-verification service over HTTP.

    ``GET {url}?email=...`` with a bearer key; the JSON answer carries
    ``deliverability`` (or ``status``/``result``) and an optional ``reason``.
    """

    provider = "http"

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def check(self, email: str) -> DeliverabilityVerdict:
        headers = {}
        if self.settings.deliverability_api_key:
            headers["Authorization"] = f"Bearer {self.settings.deliverability_api_key}"
        t0 = time.time()
        try:
            resp = self.session.get(
                self.settings.deliverability_api_url,
                params={"email": email},
                headers=headers,
                timeout=self.settings.http_timeout_seconds,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            self._log("error", t0, str(e))
            raise ServiceUnavailable(f"Deliverability check failed: {e}") from e
        except ValueError as e:
            self._log("error", t0, "non-JSON response")
            raise InvalidResponse("Deliverability service returned a non-JSON response") from e
        if not isinstance(data, dict):
            self._log("error", t0, f"unexpected JSON {type(data).__name__}")
            raise InvalidResponse(f"Deliverability service returned a JSON {type(data).__name__}, expected an object")

        raw =str(data.get("deliverability") or data.get("status") or data.get("result") or "").upper()
        if raw not in VERDICTS:
            self._log("error", t0, f"unknown verdict {raw!r}")
            raise InvalidResponse(f"Unknown deliverability verdict: {raw!r}")
        self._log("ok", t0, None)
        return DeliverabilityVerdict(raw, str(data.get("reason") or f"Verdict {raw} from mail verification service."))

    def _log(self, status: str, t0: float, error: Optional[str]) -> None:
        log_call(
            caller="mail_deliverability.http",
            provider=self.provider,
            operation="deliverability_check",
            duration_ms=int((time.time() - t0) * 1000),
            status=status,
            error=error,
        )


def build_deliverability_checker(settings: Optional[Settings] = None) -> DeliverabilityPort:
    settings = settings or get_settings()
    provider = (settings.deliverability_provider or "sandbox").lower()
    if provider == "sandbox":
        return SandboxDeliverabilityChecker()
    if provider == "http":
        return HttpDeliverabilityChecker(settings)
    raise NotImplementedError(f"Deliverability provider not implemented: {provider}")
