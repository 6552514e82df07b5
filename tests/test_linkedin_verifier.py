from __future__ import annotations

import pytest
import requests

from config.settings import get_settings
from errors import ApiLimitReached, InvalidUrl, ServiceUnavailable
from ports import Employment, LookupProfile
from services.linkedin_lookup import ApifyProfileLookup, SandboxProfileLookup, parse_profile_item
from services.linkedin_verifier import LinkedInVerifier, company_matches, resolve_profile_identifier


ACME = LookupProfile(
    profile_url="https://www.linkedin.com/in/jane-doe",
    full_name="Jane Doe",
    employment=[Employment(company="Acme Corp"), Employment(company="OldCo")],
)


@pytest.fixture
def verifier():
    return LinkedInVerifier(SandboxProfileLookup(profiles={"jane-doe": ACME}))


def test_resolve_identifier_variants():
    assert resolve_profile_identifier("https://www.linkedin.com/in/jane-doe/") == "jane-doe"
    assert resolve_profile_identifier("linkedin.com/in/jane-doe?trk=x") == "jane-doe"
    assert resolve_profile_identifier("https://de.linkedin.com/in/j%C3%BCrgen") == "jürgen"
    for bad in (None, "", "https://example.com/in/jane", "https://www.linkedin.com/company/acme", "https://linkedin.com/in/"):
        with pytest.raises(InvalidUrl):
            resolve_profile_identifier(bad)


def test_company_match_direction():
    assert company_matches("acme", "Acme Corp")
    assert not company_matches("Acme Corp International", "Acme Corp")
    assert not company_matches("", "Acme")
    assert not company_matches("Acme", None)


def test_unknown_profile_not_found(verifier):
    result = verifier.verify("https://linkedin.com/in/unknown-person", "Acme", profile_id="p1")
    assert result.status == "profile_not_found"
    assert result.profile_id == "p1"


def test_case_insensitive_match_verified(verifier):
    result = verifier.verify("https://www.linkedin.com/in/jane-doe", "acme")
    assert result.status == "verified"
    assert result.resolved_profile_url == "https://www.linkedin.com/in/jane-doe"


def test_older_employer_also_matches(verifier):
    assert verifier.verify("https://www.linkedin.com/in/jane-doe", "oldco").status == "verified"


def test_mismatch_names_claimed_and_latest(verifier):
    result = verifier.verify("https://www.linkedin.com/in/jane-doe", "Initech")
    assert result.status == "company_mismatch"
    assert "Initech" in result.message
    assert "Acme Corp" in result.message
    assert "OldCo" not in result.message


def test_sandbox_derived_company():
    v = LinkedInVerifier(SandboxProfileLookup())
    assert v.verify("https://linkedin.com/in/jane-doe", "JaneCorp").status == "verified"
    assert v.verify("https://linkedin.com/in/jane-doe", "Globex").status == "company_mismatch"


def test_api_limit_reported_as_status():
    v = LinkedInVerifier(SandboxProfileLookup(limit_reached=True))
    result = v.verify("https://linkedin.com/in/jane-doe", "Acme")
    assert result.status == "api_limit_reached"
    assert "limit" in result.message.lower()


def test_invalid_url_is_error_status(verifier):
    result = verifier.verify("not a url", "Acme")
    assert result.status == "error"


class _Resp:
    def __init__(self, status_code, data):
        self.status_code = status_code
        self._data = data
        self.text = str(data)

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class _Session:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc:
            raise self.exc
        return self.resp


def _apify(session):
    return ApifyProfileLookup(get_settings(), session=session)


def test_apify_lookup_parses_items(monkeypatch):
    monkeypatch.setenv("APIFY_API_TOKEN", "tok")
    get_settings.cache_clear()
    items = [{
        "basic_info": {"fullname": "Jane Doe", "profile_url": "https://www.linkedin.com/in/jane-doe", "current_company": "Acme Corp"},
        "experience": [{"company": "Acme Corp", "title": "CTO"}, {"company": "OldCo", "title": "Engineer"}],
    }]
    session = _Session(_Resp(200, items))
    profiles = _apify(session).lookup("jane-doe")

    assert len(profiles) == 1
    assert profiles[0].full_name == "Jane Doe"
    assert [e.company for e in profiles[0].employment] == ["Acme Corp", "OldCo"]
    url, kwargs = session.calls[0]
    assert url.endswith("/run-sync-get-dataset-items")
    assert kwargs["json"] == {"usernames": ["jane-doe"]}
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["timeout"] == get_settings().http_timeout_seconds


def test_apify_quota_and_failures():
    with pytest.raises(ApiLimitReached):
        _apify(_Session(_Resp(402, {"error": {"type": "payment", "message": "Monthly usage hard limit exceeded"}}))).lookup("x")
    with pytest.raises(ApiLimitReached):
        _apify(_Session(_Resp(400, {"error": {"type": "x", "message": "Rate limit hit"}}))).lookup("x")
    with pytest.raises(ServiceUnavailable):
        _apify(_Session(_Resp(500, {"error": {"type": "internal", "message": "oops"}}))).lookup("x")
    with pytest.raises(ServiceUnavailable):
        _apify(_Session(exc=requests.Timeout("slow"))).lookup("x")


def test_parse_flat_item_current_company_first():
    profile = parse_profile_item({
        "publicIdentifier": "jane-doe",
        "firstName": "Jane",
        "lastName": "Doe",
        "currentCompany": {"name": "NewCo"},
        "experiences": [{"companyName": "Acme Corp"}],
    })
    assert profile.profile_url == "https://www.linkedin.com/in/jane-doe"
    assert profile.full_name == "Jane Doe"
    assert [e.company for e in profile.employment] == ["NewCo", "Acme Corp"]
