from __future__ import annotations

import logging
import os
import sys
from typing import Any

from config.settings import get_settings


_INITIALIZED: bool = False

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s "
    "step=%(step)s status=%(status)s subject=%(subject)s provider=%(provider)s "
    "duration_ms=%(duration_ms)s error=%(error)s run_id=%(run_id)s"
)


class PipelineLogFormatter(logging.Formatter):
    """Formatter for pipeline log lines with optional ``extra`` fields.

    ``subject`` is the submission or profile id the line is about. A record
    without ``run_id`` takes the ``RUN_ID`` environment variable, so lines
    logged from continuation threads carry the CLI invocation's id.
    """

    DEFAULTS: dict[str, Any] = {
        "step": "-",
        "status": "-",
        "subject": "-",
        "provider": "-",
        "duration_ms": "-",
        "error": "-",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self.DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        if not getattr(record, "run_id", None):
            record.run_id = os.getenv("RUN_ID") or "-"
        return super().format(record)


def init_logging(level: str | None = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        # stdout carries the CLI's JSON output
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(log_level)
        handler.setFormatter(PipelineLogFormatter(fmt=LOG_FORMAT))
        root_logger.addHandler(handler)

    _INITIALIZED = True
