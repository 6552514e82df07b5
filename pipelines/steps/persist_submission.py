from __future__ import annotations

import logging

from errors import UnregisteredSender
from pipelines.runner import RunContext
from ports import RecordStorePort
from services.failure_report import record_failure


logger = logging.getLogger(__name__)


class CheckRegisteredSender:
    """Reject submissions whose sender is not in the ``clients`` collection."""

    def __init__(self, store: RecordStorePort, enabled: bool = True) -> None:
        self.store = store
        self.enabled = enabled

    def run(self, ctx: RunContext) -> RunContext:
        if not self.enabled:
            return ctx
        sender = (ctx.submission.source_email or "").strip().lower() if ctx.submission else ""
        if sender and self.store.find("clients", email=sender):
            return ctx
        record_failure(self.store, "sender", sender or None, "Sender is not registered in the database.")
        raise UnregisteredSender(sender or None)


class PersistSubmission:
    def __init__(self, store: RecordStorePort) -> None:
        self.store = store

    def run(self, ctx: RunContext) -> RunContext:
        sub = ctx.submission
        self.store.add("submissions", sub.model_dump())
        logger.info(
            "Stored submission %s from %s",
            sub.id,
            sub.source_email or "-",
            extra={"step": "submit", "status": "ok", "subject": sub.id},
        )
        return ctx
