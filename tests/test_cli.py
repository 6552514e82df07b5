from __future__ import annotations

import json
import sys
from typing import List

import pytest

from db.repos.records_repo import open_store


def _run_cli_with_args(args_list: List[str]) -> int:
    argv_backup = sys.argv[:]
    try:
        sys.argv = ["cli.py"] + args_list
        if "cli" in sys.modules:
            del sys.modules["cli"]
        import cli  # type: ignore
        try:
            cli.main()  # type: ignore[attr-defined]
        except SystemExit as e:
            return int(getattr(e, "code", 0) or 0)
        return 0
    finally:
        sys.argv = argv_backup


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "cli.db"
    assert _run_cli_with_args(["--db", str(path), "bootstrap"]) == 0
    return path


def test_submit_text_runs_full_pipeline(db_path):
    code = _run_cli_with_args([
        "--db", str(db_path), "submit", "--sender", "jane@example.com",
        "--text", "Name: Jane Doe\nCompany: Example\nEmail: jane@example.com\nhttps://linkedin.com/in/jane-doe",
    ])
    assert code == 0

    store = open_store(str(db_path))
    profiles = store.find("extracted_profiles")
    assert len(profiles) == 1
    assert profiles[0]["extraction_status"] == "complete"
    # submit waits for the continuation before exiting
    assert store.find("verification_results", profile_id=profiles[0]["id"])
    assert store.find("linkedin_verifications", profile_id=profiles[0]["id"])
    assert store.find("verified_profiles", profile_id=profiles[0]["id"])


def test_submit_file(db_path, tmp_path):
    doc = tmp_path / "signature.html"
    doc.write_text("<html><body><p>Name: Jane Doe</p><p>Company: Acme</p></body></html>", encoding="utf-8")
    assert _run_cli_with_args(["--db", str(db_path), "submit", "--file", str(doc)]) == 0
    row = open_store(str(db_path)).find("extracted_profiles")[0]
    assert row["name"] == "Jane Doe"
    assert row["company"] == "Acme"


def test_submit_unsupported_file_exits_nonzero(db_path, tmp_path):
    img = tmp_path / "logo.png"
    img.write_bytes(b"\x89PNG")
    assert _run_cli_with_args(["--db", str(db_path), "submit", "--file", str(img)]) == 1
    store = open_store(str(db_path))
    assert store.find("extracted_profiles")[0]["error"]
    assert store.find("validation_failures", stage="normalize")


def test_approve_and_report(db_path, capsys):
    _run_cli_with_args(["--db", str(db_path), "submit", "--text", "Name: Jane Doe"])
    profile_id = open_store(str(db_path)).find("extracted_profiles")[0]["id"]
    capsys.readouterr()

    assert _run_cli_with_args(["--db", str(db_path), "approve", "--profile-id", profile_id]) == 0
    assert json.loads(capsys.readouterr().out) == {profile_id: "promoted"}
    assert _run_cli_with_args(["--db", str(db_path), "approve", "--profile-id", profile_id]) == 0
    assert json.loads(capsys.readouterr().out) == {profile_id: "already_verified"}
    assert _run_cli_with_args(["--db", str(db_path), "approve", "--profile-id", "missing"]) == 1
    capsys.readouterr()

    assert _run_cli_with_args(["--db", str(db_path), "report", "verified"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [r["profile_id"] for r in rows] == [profile_id]


def test_registered_sender_gate(db_path, monkeypatch):
    monkeypatch.setenv("REQUIRE_REGISTERED_SENDER", "true")
    from config.settings import get_settings
    get_settings.cache_clear()

    args = ["--db", str(db_path), "submit", "--sender", "jane@example.com", "--text", "Name: Jane Doe"]
    assert _run_cli_with_args(args) == 1
    assert _run_cli_with_args(["--db", str(db_path), "register-client", "--email", "Jane@Example.com"]) == 0
    assert _run_cli_with_args(args) == 0
    assert len(open_store(str(db_path)).find("extracted_profiles")) == 1


def test_summarize_failures_archives_and_clears(db_path, tmp_path, capsys):
    img = tmp_path / "logo.png"
    img.write_bytes(b"\x89PNG")
    _run_cli_with_args(["--db", str(db_path), "submit", "--file", str(img)])
    archive = tmp_path / "failures.json"
    capsys.readouterr()

    assert _run_cli_with_args(["--db", str(db_path), "summarize-failures", "--archive", str(archive)]) == 0
    out = capsys.readouterr().out
    assert "- normalize: 1" in out
    assert "Cleared 1 validation failures" in out
    assert json.loads(archive.read_text(encoding="utf-8"))[0]["stage"] == "normalize"
    assert open_store(str(db_path)).find("validation_failures") == []
