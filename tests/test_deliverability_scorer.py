from __future__ import annotations

import pytest

from errors import ServiceUnavailable
from ports import DeliverabilityVerdict
from services.deliverability_scorer import DeliverabilityScorer, company_domain
from services.mail_deliverability import SandboxDeliverabilityChecker


class _FixedChecker:
    provider = "fixed"

    def __init__(self, verdict: str):
        self.verdict = verdict

    def check(self, email):
        return DeliverabilityVerdict(self.verdict, f"Verdict {self.verdict}.")


class _DownChecker:
    provider = "down"

    def check(self, email):
        raise ServiceUnavailable("connection refused")


@pytest.fixture
def scorer():
    return DeliverabilityScorer(SandboxDeliverabilityChecker())


def test_domain_match_contributes(scorer):
    result = scorer.score("jane@example.com", "Example", profile_id="p1")
    assert result.domain_match is True
    assert result.deliverability == "DELIVERABLE"
    assert result.score == pytest.approx(1.0)
    assert result.profile_id == "p1"
    assert result.reason.index("Email domain matches") < result.reason.index("valid and can receive")


def test_undeliverable_without_match_scores_zero(scorer):
    result = scorer.score("test.undeliverable@x.com", "Acme")
    assert result.domain_match is False
    assert result.deliverability == "UNDELIVERABLE"
    assert result.score == 0.0


def test_risky_marker(scorer):
    result = scorer.score("risky@acme.com", "Acme")
    assert result.deliverability == "RISKY"
    assert result.score == pytest.approx(0.6)


def test_missing_email_is_risky_with_no_contribution(scorer):
    result = scorer.score(None, "Acme")
    assert result.deliverability == "RISKY"
    assert result.domain_match is False
    assert result.score == 0.0
    assert "Missing email" in result.reason


def test_company_with_spaces_is_squashed():
    assert company_domain("Example Corp") == "examplecorp"
    assert company_domain("www.Acme.io") == "acme.io"
    assert company_domain("Acme & Sons") is None
    assert company_domain("   ") is None


def test_unparseable_company_recorded_in_reason(scorer):
    result = scorer.score("jane@acme.com", "Acme & Sons")
    assert result.domain_match is False
    assert "Could not parse company name" in result.reason


def test_checker_failure_degrades():
    result = DeliverabilityScorer(_DownChecker()).score("jane@example.com", "Example")
    assert result.deliverability == "RISKY"
    assert result.domain_match is True
    assert result.score == pytest.approx(0.4)
    assert "connection refused" in result.reason


@pytest.mark.parametrize("match_company", ["Example", "Unrelated"])
def test_score_monotone_in_deliverability(match_company):
    scores = [
        DeliverabilityScorer(_FixedChecker(v)).score("jane@example.com", match_company).score
        for v in ("UNDELIVERABLE", "RISKY", "DELIVERABLE")
    ]
    assert scores == sorted(scores)
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_domain_match_never_lowers_score():
    for verdict in ("UNDELIVERABLE", "RISKY", "DELIVERABLE"):
        s = DeliverabilityScorer(_FixedChecker(verdict))
        assert s.score("jane@example.com", "Example").score >= s.score("jane@example.com", "Other").score


class _Resp:
    def __init__(self, data, status=200):
        self._data = data
        self.status = status

    def raise_for_status(self):
        import requests
        if self.status >= 400:
            raise requests.HTTPError(f"HTTP {self.status}")

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class _Session:
    def __init__(self, resp):
        self.resp = resp
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.resp


def _http_checker(monkeypatch, resp):
    from config.settings import get_settings
    from services.mail_deliverability import HttpDeliverabilityChecker

    monkeypatch.setenv("DELIVERABILITY_API_URL", "https://verify.example/api")
    monkeypatch.setenv("DELIVERABILITY_API_KEY", "k")
    get_settings.cache_clear()
    session = _Session(resp)
    return HttpDeliverabilityChecker(get_settings(), session=session), session


def test_http_checker_reads_verdict(monkeypatch):
    checker, session = _http_checker(monkeypatch, _Resp({"status": "deliverable", "reason": "mailbox exists"}))
    verdict = checker.check("jane@example.com")
    assert verdict.deliverability == "DELIVERABLE"
    assert verdict.reason == "mailbox exists"
    url, kwargs = session.calls[0]
    assert kwargs["params"] == {"email": "jane@example.com"}
    assert kwargs["headers"]["Authorization"] == "Bearer k"


def test_http_checker_errors(monkeypatch):
    from errors import InvalidResponse

    checker, _ = _http_checker(monkeypatch, _Resp({}, status=503))
    with pytest.raises(ServiceUnavailable):
        checker.check("jane@example.com")
    checker, _ = _http_checker(monkeypatch, _Resp({"status": "maybe"}))
    with pytest.raises(InvalidResponse):
        checker.check("jane@example.com")
    checker, _ = _http_checker(monkeypatch, _Resp(ValueError("not json")))
    with pytest.raises(InvalidResponse):
        checker.check("jane@example.com")


@pytest.mark.parametrize("body", [["DELIVERABLE"], "DELIVERABLE", 1])
def test_http_checker_non_object_json_degrades_scoring(monkeypatch, body):
    from errors import InvalidResponse

    checker, _ = _http_checker(monkeypatch, _Resp(body))
    with pytest.raises(InvalidResponse):
        checker.check("jane@example.com")

    result = DeliverabilityScorer(checker).score("jane@example.com", "Unrelated")
    assert result.deliverability == "RISKY"
    assert result.score == 0.0
    assert "Deliverability check unavailable" in result.reason
