from __future__ import annotations

import os


# Central routing for LLM use-cases. Edit here to change per-operation defaults.
# You can also override per-route model via env vars for quick testing.
#
# Keys are use_case identifiers consumed by services/llm_client.py
ROUTES: dict[str, dict] = {
    # Contact field extraction from email/document text
    "contact_extraction": {
        "provider": os.getenv("LLM_EXTRACTION_PROVIDER", "openai"),
        "model": os.getenv("OPENAI_MODEL_EXTRACTION"),  # falls back to global OPENAI_MODEL
        "temperature": 0,
        "response_format": {"type": "json_object"},
        # Logical operation name for logging (not a vendor API name)
        "operation": "contact_extraction",
    },
    # Operator-facing summary of recorded validation failures
    "failure_summary": {
        "provider": os.getenv("LLM_SUMMARY_PROVIDER", "openai"),
        "model": os.getenv("OPENAI_MODEL_SUMMARY"),
        "operation": "failure_summary",
    },
}
