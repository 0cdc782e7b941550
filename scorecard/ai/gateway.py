"""
Strategic Scorecard Service
LLM gateway: one entry point for every model call the assistant makes.

    gw = LLMGateway(api_key=app.config["OPENAI_API_KEY"])
    result = gw.chat([{"role": "user", "content": "Summarise Q3"}], purpose="chat")
    result["content"]

A model name is mapped to a provider.  OpenAI is only registered when a key
is configured; every other call lands on ``LocalStubProvider``, which gives
deterministic answers so the assistant endpoints work offline.  Failed calls
are retried with exponential backoff and every attempt is logged.
"""

import json
import logging
import os
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

LOCAL = "local"
OPENAI = "openai"


class LLMUpstreamError(RuntimeError):
    """The provider kept failing until the retry budget ran out."""


class LLMProvider(ABC):
    """A chat-completion backend.

    ``chat`` returns ``{content, prompt_tokens, completion_tokens, model}``.
    """

    @abstractmethod
    def chat(self, messages: list, model: str, **kwargs) -> dict:
        ...


class OpenAIProvider(LLMProvider):

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self._client = None

    @property
    def client(self):
        if self._client is None:
            import openai

            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def chat(self, messages: list, model: str = "gpt-4.1", **kwargs) -> dict:
        request = {"model": model, "messages": messages, "temperature": kwargs.get("temperature", 0.3)}
        if kwargs.get("max_tokens"):
            request["max_tokens"] = kwargs["max_tokens"]
        completion = self.client.chat.completions.create(**request)
        usage = completion.usage
        return {
            "content": completion.choices[0].message.content or "",
            "prompt_tokens": getattr(usage, "prompt_tokens", 0),
            "completion_tokens": getattr(usage, "completion_tokens", 0),
            "model": model,
        }


class LocalStubProvider(LLMProvider):
    """Offline provider.  The answer depends only on the system prompt and the last user turn."""

    PREFIX = "[local-stub]"

    def chat(self, messages: list, model: str = "local-stub", **kwargs) -> dict:
        system = next((m["content"] for m in messages if m["role"] == "system"), "")
        user = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        content = self._generate_stub_response(system, user)
        return {
            "content": content,
            "prompt_tokens": len(system.split()) + len(user.split()),
            "completion_tokens": len(content.split()),
            "model": "local-stub",
        }

    @classmethod
    def _generate_stub_response(cls, system_msg: str, user_msg: str) -> str:
        flow_hint = system_msg.lower()
        excerpt = " ".join(user_msg.split())[:200]

        if "progress update" in flow_hint:
            return "\n".join((
                f"{cls.PREFIX} Progress update",
                "",
                f"- Summary: {excerpt or 'No content supplied.'}",
                "- Next steps: confirm owners and dates for the open items.",
            ))
        if "reprioriti" in flow_hint:
            return json.dumps({
                "stub": True,
                "recommendation": "Keep the current quarter order; revisit after the next review.",
                "request": excerpt,
            })
        if "compar" in flow_hint:
            return f"{cls.PREFIX} Comparison: the goals overlap in scope; see request: {excerpt}"
        return f"{cls.PREFIX} {excerpt or 'No question supplied.'}"


class LLMGateway:
    """Routes chat calls to a provider, retrying transient failures."""

    # unlisted gpt-* names also go to OpenAI
    PROVIDER_MAP = {
        "gpt-4.1": OPENAI,
        "gpt-4.1-mini": OPENAI,
        "gpt-4o": OPENAI,
        "gpt-4o-mini": OPENAI,
        "local-stub": LOCAL,
    }

    DEFAULT_CHAT_MODEL = os.getenv("LLM_DEFAULT_CHAT_MODEL", "gpt-4.1")

    def __init__(self, api_key: str | None = None, default_model: str | None = None,
                 temperature: float = 0.3, backoff_cap: float = 4):
        self._default_model = default_model or self.DEFAULT_CHAT_MODEL
        self._temperature = temperature
        self._backoff_cap = backoff_cap
        self._providers: dict[str, LLMProvider] = {LOCAL: LocalStubProvider()}
        if api_key:
            self._providers[OPENAI] = OpenAIProvider(api_key=api_key)

    @property
    def available_providers(self) -> list[str]:
        return sorted(self._providers)

    def register_provider(self, name: str, provider: LLMProvider) -> None:
        self._providers[name] = provider

    def _route(self, model: str) -> tuple[str, LLMProvider]:
        name = self.PROVIDER_MAP.get(model) or (OPENAI if model.startswith("gpt-") else LOCAL)
        if name not in self._providers:
            logger.warning("No %s provider configured; model %s served by the local stub", name, model)
            name = LOCAL
        return name, self._providers[name]

    def chat(self, messages: list, model: str | None = None, *, purpose: str = "",
             max_retries: int = 3, **kwargs) -> dict:
        """Run one completion.

        ``purpose`` names the calling flow for the logs.  Extra keyword
        arguments (``temperature``, ``max_tokens``) go to the provider.  The
        result gains ``provider`` and ``latency_ms``.

        Raises:
            LLMUpstreamError: all ``max_retries`` attempts failed.
        """
        model = model or self._default_model
        kwargs.setdefault("temperature", self._temperature)
        provider_name, provider = self._route(model)

        failure = None
        for attempt in range(1, max_retries + 1):
            started = time.time()
            try:
                result = provider.chat(messages, model, **kwargs)
            except Exception as exc:
                failure = exc
                logger.warning(
                    "LLM attempt %d/%d failed (purpose=%s provider=%s): %s",
                    attempt, max_retries, purpose, provider_name, exc,
                )
                if attempt < max_retries:
                    time.sleep(min(2 ** (attempt - 1), self._backoff_cap))
                continue

            result["provider"] = provider_name
            result["latency_ms"] = int((time.time() - started) * 1000)
            logger.info(
                "LLM ok purpose=%s provider=%s model=%s tokens=%d+%d latency=%dms",
                purpose, provider_name, result["model"],
                result["prompt_tokens"], result["completion_tokens"], result["latency_ms"],
            )
            return result

        raise LLMUpstreamError(f"LLM call failed after {max_retries} attempts: {failure}")
