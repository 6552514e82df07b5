from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


CONTACT_FIELDS = ("name", "company", "designation", "phone", "email", "linkedin_url")


class ExtractionResult(BaseModel):
    """LLM structured output: the fixed contact schema, every field optional.

    Keys the backend returns outside this schema are dropped.
    """

    name: str | None = None
    company: str | None = None
    designation: str | None = None
    phone: str | None = None
    email: str | None = None
    linkedin_url: str | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator(*CONTACT_FIELDS, mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            if not value or value.lower() in ("null", "none", "n/a", "unknown"):
                return None
        return value

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls()
