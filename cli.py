import argparse
import json
import os
import uuid as _uuid
from pathlib import Path
from typing import Any, Dict, List

from config.settings import get_settings
from db import schema
from db.connection import get_connection
from db.repos.records_repo import RecordsRepo, open_store
from errors import DuplicateRecord, PipelineError, UnregisteredSender
from models import RawSubmission
from pipelines.orchestrator import build_pipeline
from ports import MailSelector
from services.approval import approve_profiles
from services.failure_report import summarize_failures
from sources.file_source import FileSource
from sources.registry import get_source
from utils.logging_setup import init_logging

REPORTS = {
    "submissions": "submissions",
    "profiles": "extracted_profiles",
    "verifications": "verification_results",
    "linkedin": "linkedin_verifications",
    "verified": "verified_profiles",
    "failures": "validation_failures",
}


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _printable(row: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(row)
    # Binary payloads are shown by size only
    if isinstance(out.get("payload"), (bytes, bytearray)):
        out["payload"] = f"<{len(out['payload'])} bytes>"
    return out


def _run_submissions(store: RecordsRepo, submissions: List[RawSubmission]) -> int:
    pipeline = build_pipeline(store)
    failures = 0
    try:
        for sub in submissions:
            try:
                profile = pipeline.process(sub)
            except UnregisteredSender as e:
                print(f"Rejected submission: {e}")
                failures += 1
                continue
            _print_json(profile.model_dump(mode="json", exclude={"raw_text"}))
            if profile.error:
                failures += 1
        pipeline.wait_pending()
    finally:
        pipeline.close()
    return failures


def cmd_bootstrap(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    print("Schema ready")


def cmd_submit(args):
    store = open_store(args.db)
    if args.file:
        source = FileSource([Path(args.file)], sender=args.sender, mime_type=args.mime)
        submissions = source.fetch(MailSelector(sender=args.sender, limit=1))
    else:
        submissions = [RawSubmission(
            source_email=args.sender,
            content=args.text,
            mime_type=args.mime or "text/plain",
            subject=args.subject,
        )]
    if _run_submissions(store, submissions):
        raise SystemExit(1)


def cmd_fetch_gmail(args):
    store = open_store(args.db)
    selector = MailSelector(sender=args.sender, limit=args.limit, attachments=args.attachments)
    try:
        submissions = get_source("gmail").fetch(selector)
    except PipelineError as e:
        print(f"Gmail fetch failed: {e}")
        raise SystemExit(1)
    if not submissions:
        print("No matching email found")
        return
    if _run_submissions(store, submissions):
        raise SystemExit(1)


def cmd_approve(args):
    store = open_store(args.db)
    outcomes = approve_profiles(store, args.profile_id, details=args.details)
    _print_json(outcomes)
    if any(v == "not_found" for v in outcomes.values()):
        raise SystemExit(1)


def cmd_report(args):
    store = open_store(args.db)
    rows = store.find(REPORTS[args.kind])[: args.limit]
    _print_json([_printable(r) for r in rows])


def cmd_summarize_failures(args):
    settings = get_settings()
    store = open_store(args.db)
    llm = None
    if settings.ai_enabled and settings.openai_api_key:
        from services.llm_client import LLMClient
        llm = LLMClient(settings)
    report = summarize_failures(store, llm=llm, archive_path=Path(args.archive) if args.archive else None)
    print(report.summary)
    print(f"Cleared {report.cleared} validation failures")


def cmd_register_client(args):
    store = open_store(args.db)
    email = args.email.strip().lower()
    try:
        client_id = store.add("clients", {"email": email, "name": args.name})
    except DuplicateRecord:
        print(f"Client already registered: {email}")
        return
    print(f"Registered client {email} ({client_id})")


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    if not os.getenv("RUN_ID"):
        os.environ["RUN_ID"] = _uuid.uuid4().hex
    parser = argparse.ArgumentParser(description="Contact profile pipeline CLI")
    parser.add_argument("--db", default=settings.db_path, help="Path to SQLite DB (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_boot = sub.add_parser("bootstrap", help="Create tables and indexes")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_sub = sub.add_parser("submit", help="Process one email body or document")
    src = p_sub.add_mutually_exclusive_group(required=True)
    src.add_argument("--text", help="Raw email/body text")
    src.add_argument("--file", help="Path to a text, HTML, PDF, DOCX or XLS file")
    p_sub.add_argument("--mime", default=None, help="MIME type override (default: guessed from file extension)")
    p_sub.add_argument("--sender", default=None, help="Sender email address")
    p_sub.add_argument("--subject", default=None, help="Subject line for --text submissions")
    p_sub.set_defaults(func=cmd_submit)

    p_gm = sub.add_parser("fetch-gmail", help="Fetch recent emails from Gmail and process them")
    p_gm.add_argument("--sender", required=True, help="Only emails from this address")
    p_gm.add_argument("--limit", type=int, default=1, help="Most recent N emails (default: 1)")
    p_gm.add_argument("--attachments", action="store_true", help="Only emails with attachments")
    p_gm.set_defaults(func=cmd_fetch_gmail)

    p_ap = sub.add_parser("approve", help="Promote extracted profiles to verified profiles")
    p_ap.add_argument("--profile-id", nargs="+", required=True, help="Extracted profile id(s)")
    p_ap.add_argument("--details", default="Manually approved by reviewer.", help="Verification details to store")
    p_ap.set_defaults(func=cmd_approve)

    p_rep = sub.add_parser("report", help="List records of one kind, newest first")
    p_rep.add_argument("kind", choices=sorted(REPORTS))
    p_rep.add_argument("--limit", type=int, default=20)
    p_rep.set_defaults(func=cmd_report)

    p_sf = sub.add_parser("summarize-failures", help="Summarize and clear recorded validation failures")
    p_sf.add_argument("--archive", default=None, help="Write raw failures to this JSON file before clearing")
    p_sf.set_defaults(func=cmd_summarize_failures)

    p_rc = sub.add_parser("register-client", help="Allow a sender to submit content")
    p_rc.add_argument("--email", required=True)
    p_rc.add_argument("--name", default=None)
    p_rc.set_defaults(func=cmd_register_client)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
