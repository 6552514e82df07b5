from __future__ import annotations

import json

from errors import ServiceUnavailable
from services.failure_report import record_failure, summarize_failures


class _LLM:
    def __init__(self, answer="", exc=None):
        self.answer = answer
        self.exc = exc
        self.prompts = []

    def chat(self, **kwargs):
        raise AssertionError("not used")

    def chat_text(self, *, use_case, messages, prompt_name=None):
        assert use_case == "failure_summary"
        self.prompts.append(messages[-1]["content"])
        if self.exc:
            raise self.exc
        return self.answer


def test_plain_summary_and_clear(store):
    record_failure(store, "extract", "sub-1", "ServiceUnavailable: timeout")
    record_failure(store, "extract", "sub-2", "InvalidResponse: not JSON")
    record_failure(store, "normalize", "sub-3", "Unsupported format: image/png")

    report = summarize_failures(store)

    assert report.cleared == 3
    assert len(report.failures) == 3
    assert "3 validation failure(s)" in report.summary
    assert "- extract: 2" in report.summary
    assert "image/png" in report.summary
    assert store.find("validation_failures") == []


def test_empty_store_summary(store):
    report = summarize_failures(store)
    assert report.summary == "No validation failures recorded."
    assert report.cleared == 0


def test_llm_summary_used(store):
    record_failure(store, "sender", "eve@evil.test", "Sender is not registered in the database.")
    llm = _LLM("One unregistered sender was rejected.")
    report = summarize_failures(store, llm=llm)
    assert report.summary == "One unregistered sender was rejected."
    assert "eve@evil.test" in llm.prompts[0]


def test_llm_unavailable_falls_back_and_still_clears(store):
    record_failure(store, "linkedin", "p1", "api_limit_reached: LinkedIn API limit reached")
    report = summarize_failures(store, llm=_LLM(exc=ServiceUnavailable("down")))
    assert "- linkedin: 1" in report.summary
    assert report.cleared == 1


def test_archive_written_before_clearing(store, tmp_path):
    record_failure(store, "extract", "sub-1", "boom")
    archive = tmp_path / "out" / "failures.json"
    summarize_failures(store, archive_path=archive)
    data = json.loads(archive.read_text(encoding="utf-8"))
    assert data[0]["stage"] == "extract"
    assert data[0]["error"] == "boom"


def test_failure_recorded_during_summary_is_kept(store):
    record_failure(store, "extract", "s1", "boom")
    original_find = store.find

    def find_then_record(collection, **filters):
        rows = original_find(collection, **filters)
        record_failure(store, "continuation", "p2", "RuntimeError: late")
        return rows

    store.find = find_then_record
    report = summarize_failures(store)
    store.find = original_find

    assert [f.subject for f in report.failures] == ["s1"]
    assert report.cleared == 1
    left = store.find("validation_failures")
    assert [r["subject"] for r in left] == ["p2"]
