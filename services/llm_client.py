from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from config.llm_routes import ROUTES
from config.settings import Settings, get_settings
from errors import ServiceUnavailable
from utils.call_logger import log_call, sha256_text


class LLMClient:
    """Minimal wrapper to centralize per-use-case routing, timeouts and logging."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self._client = None

    def _openai(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=float(self.settings.http_timeout_seconds),
                max_retries=0,
            )
        return self._client

    def chat(self, *, use_case: str, messages: List[Dict[str, str]], temperature: Optional[float] = None, prompt_name: Optional[str] = None, prompt_text: Optional[str] = None) -> Any:
        """Run one chat completion for ``use_case``.

        Transport failures, timeouts and HTTP status errors are raised as
        ServiceUnavailable carrying the provider's diagnostic.
        """
        import openai

        route = ROUTES.get(use_case, {})
        provider = route.get("provider", "openai")
        model = route.get("model") or self.settings.openai_model or "gpt-4o-mini"
        op = route.get("operation", "chat")
        temp = temperature if temperature is not None else route.get("temperature")

        if provider != "openai":
            raise NotImplementedError(f"Provider not implemented: {provider}")

        kwargs: Dict[str, Any] = {"model": model, "messages": messages}
        # Only pass temperature if explicitly provided (some models only accept default)
        if temp is not None:
            kwargs["temperature"] = temp
        if route.get("response_format"):
            kwargs["response_format"] = route["response_format"]

        _t0 = time.time()
        try:
            resp = self._openai().chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            _dt_ms = int((time.time() - _t0) * 1000)
            log_call(
                caller=f"llm_client.chat:{use_case}",
                provider=provider,
                model=model,
                operation=op,
                prompt_name=prompt_name,
                prompt_hash=sha256_text(prompt_text),
                duration_ms=_dt_ms,
                status="error",
                error=str(e),
            )
            raise ServiceUnavailable(f"{provider} {op} failed: {e}") from e
        _dt_ms = int((time.time() - _t0) * 1000)

        usage_obj = None
        usage = getattr(resp, "usage", None)
        if usage:
            usage_obj = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            }

        log_call(
            caller=f"llm_client.chat:{use_case}",
            provider=provider,
            model=model,
            operation=op,
            prompt_name=prompt_name,
            prompt_hash=sha256_text(prompt_text),
            duration_ms=_dt_ms,
            status="ok",
            usage=usage_obj,
        )
        return resp

    def chat_text(self, *, use_case: str, messages: List[Dict[str, str]], prompt_name: Optional[str] = None) -> str:
        """Convenience wrapper returning the first choice's message content ('' if absent)."""
        prompt_text = "\n".join(m.get("content", "") for m in messages)
        resp = self.chat(use_case=use_case, messages=messages, prompt_name=prompt_name, prompt_text=prompt_text)
        choices = getattr(resp, "choices", None) or []
        if not choices:
            return ""
        return (choices[0].message.content or "").strip()
