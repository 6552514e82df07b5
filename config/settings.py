from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


PROMOTE_POLICIES = ("any", "all", "score", "off")


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Core/runtime
    db_path: str
    run_env: str
    log_level: str

    # Field extraction (LLM)
    openai_api_key: str | None
    openai_model: str | None
    extraction_provider: str  # openai | regex
    ai_enabled: bool

    # LinkedIn profile lookup
    apify_api_token: str | None
    apify_actor_id: str
    apify_base_url: str
    linkedin_lookup_provider: str  # apify | sandbox
    linkedin_verification_enabled: bool
    sandbox_linkedin_limit_reached: bool

    # Mail deliverability
    deliverability_provider: str  # sandbox | http
    deliverability_api_url: str | None
    deliverability_api_key: str | None

    # Limits/Concurrency/Timeouts
    http_timeout_seconds: int
    pipeline_workers: int

    # Promotion
    auto_promote_policy: str
    auto_promote_min_score: float

    # Mail source
    require_registered_sender: bool = False
    gmail_token_path: str = "token.json"

    # Logging/tracing
    llm_trace: bool = False
    llm_log_path: str = "logs/llm_calls.jsonl"

    @property
    def is_test(self) -> bool:
        return (self.run_env or "").lower() == "test"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    run_env = os.getenv("RUN_ENV", "local")
    openai_api_key = os.getenv("OPENAI_API_KEY")
    apify_api_token = os.getenv("APIFY_API_TOKEN")
    extraction_provider = os.getenv("EXTRACTION_PROVIDER", "openai").lower()
    lookup_provider = os.getenv("LINKEDIN_LOOKUP_PROVIDER", "apify").lower()
    deliverability_provider = os.getenv("DELIVERABILITY_PROVIDER", "sandbox").lower()
    deliverability_api_url = os.getenv("DELIVERABILITY_API_URL")
    linkedin_enabled = _as_flag("LINKEDIN_VERIFICATION_ENABLED", "true")
    policy = os.getenv("AUTO_PROMOTE_POLICY", "any").lower()

    if policy not in PROMOTE_POLICIES:
        raise RuntimeError(
            f"AUTO_PROMOTE_POLICY must be one of {', '.join(PROMOTE_POLICIES)} (got {policy!r})"
        )
    # Offline test runs may leave credentials unset
    if run_env.lower() != "test":
        if extraction_provider == "openai" and not openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY required when EXTRACTION_PROVIDER=openai"
            )
        if linkedin_enabled and lookup_provider == "apify" and not apify_api_token:
            raise RuntimeError(
                "APIFY_API_TOKEN required when LINKEDIN_LOOKUP_PROVIDER=apify and LinkedIn verification is enabled"
            )
        if deliverability_provider == "http" and not deliverability_api_url:
            raise RuntimeError(
                "DELIVERABILITY_API_URL required when DELIVERABILITY_PROVIDER=http"
            )
    return Settings(
        db_path=os.getenv("DB_PATH", "profiles.db"),
        run_env=run_env,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        openai_api_key=openai_api_key,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        extraction_provider=extraction_provider,
        ai_enabled=_as_flag("AI_ENABLED", "true"),
        apify_api_token=apify_api_token,
        apify_actor_id=os.getenv(
            "APIFY_ACTOR_ID", "apimaestro~linkedin-profile-batch-scraper-no-cookies-required"
        ),
        apify_base_url=os.getenv("APIFY_BASE_URL", "https://api.apify.com/v2"),
        linkedin_lookup_provider=lookup_provider,
        linkedin_verification_enabled=linkedin_enabled,
        sandbox_linkedin_limit_reached=_as_flag("SANDBOX_LINKEDIN_LIMIT_REACHED", "false"),
        deliverability_provider=deliverability_provider,
        deliverability_api_url=deliverability_api_url,
        deliverability_api_key=os.getenv("DELIVERABILITY_API_KEY"),
        http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        pipeline_workers=int(os.getenv("PIPELINE_WORKERS", "2")),
        auto_promote_policy=policy,
        auto_promote_min_score=float(os.getenv("AUTO_PROMOTE_MIN_SCORE", "0.6")),
        require_registered_sender=_as_flag("REQUIRE_REGISTERED_SENDER", "false"),
        gmail_token_path=os.getenv("GMAIL_TOKEN_PATH", "token.json"),
        llm_trace=_as_flag("LLM_TRACE", "false"),
        llm_log_path=os.getenv("LLM_LOG_PATH", "logs/llm_calls.jsonl"),
    )
