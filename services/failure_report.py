from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from errors import PipelineError
from models import ValidationFailure
from ports import LLMClientPort, RecordStorePort


logger = logging.getLogger(__name__)


@dataclass
class FailureReport:
    summary: str
    failures: List[ValidationFailure] = field(default_factory=list)
    cleared: int = 0


def record_failure(store: RecordStorePort, stage: str, subject: Optional[str], error: str) -> str:
    failure = ValidationFailure(stage=stage, subject=subject, error=error)
    logger.warning(
        "Recorded %s failure for %s",
        stage,
        subject or "-",
        extra={"step": stage, "status": "failed", "subject": subject or "-", "error": error},
    )
    return store.add("validation_failures", failure.model_dump())


def _plain_summary(failures: List[ValidationFailure]) -> str:
    if not failures:
        return "No validation failures recorded."
    counts = Counter(f.stage for f in failures)
    lines = [f"{len(failures)} validation failure(s) recorded."]
    for stage, n in counts.most_common():
        lines.append(f"- {stage}: {n}")
    lines.append("")
    for f in failures:
        lines.append(f"[{f.stage}] {f.subject or '-'}: {f.error}")
    return "\n".join(lines)


def _llm_summary(llm: LLMClientPort, failures: List[ValidationFailure]) -> str:
    bullet_list = "\n".join(f"- [{f.stage}] {f.subject or '-'}: {f.error}" for f in failures)
    prompt = (
        "You are an assistant that summarizes validation failure reports for administrators.\n\n"
        "Summarize the following validation failures into a concise report, grouping "
        "similar causes and naming the affected senders or profiles:\n\n"
        f"Validation Failures:\n{bullet_list}\n"
    )
    return llm.chat_text(
        use_case="failure_summary",
        messages=[{"role": "user", "content": prompt}],
        prompt_name="failure_summary_v1",
    )


def summarize_failures(
    store: RecordStorePort,
    llm: Optional[LLMClientPort] = None,
    archive_path: Optional[Path] = None,
) -> FailureReport:
    """Summarize every recorded failure, then delete them.

    Clearing is permanent: pass ``archive_path`` to keep a JSON copy of the
    raw failures. The LLM summary falls back to a plain listing when the
    service is unavailable; the failures are still cleared.
    """
    failures = [ValidationFailure.model_validate(r) for r in store.find("validation_failures")]
    failures.sort(key=lambda f: f.created_at)

    summary: Optional[str] = None
    if llm is not None and failures:
        try:
            summary = _llm_summary(llm, failures) or None
        except PipelineError as e:
            logger.warning(
                "LLM failure summary unavailable; using plain listing",
                extra={"step": "summary", "status": "degraded", "error": str(e)},
            )
    if summary is None:
        summary = _plain_summary(failures)

    if archive_path is not None:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        archive_path.write_text(
            json.dumps([f.model_dump(mode="json") for f in failures], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    # Only the failures read above; ones recorded meanwhile wait for the next summary
    cleared = store.delete("validation_failures", [f.id for f in failures])
    logger.info("Cleared %d validation failures", cleared, extra={"step": "summary", "status": "cleared"})
    return FailureReport(summary=summary, failures=failures, cleared=cleared)
