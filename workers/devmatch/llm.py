"""LiteLLM Proxy client for the ranking engine, with scenario-based routing."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from devmatch.config import resolve_match_model

logger = logging.getLogger(__name__)

# Model used when no model is specified in the request.
# Set via DEVMATCH_MATCH_MODEL / DEVMATCH_DEFAULT_MODEL or falls back to groq/llama-3.3-70b-versatile.
DEFAULT_MODEL: str = resolve_match_model()


class LLMError(Exception):
    """Raised when the LLM proxy returns an error response."""

    def __init__(self, status_code: int, model: str, body: str) -> None:
        self.status_code = status_code
        self.model = model
        self.body = body
        # Truncate body for the message but keep it accessible via .body
        short = body[:500] if len(body) > 500 else body
        super().__init__(f"LiteLLM {status_code} for model={model}: {short}")


class MalformedResponseError(ValueError):
    """Raised when the proxy answers 2xx with a body that is not a completion object."""

    def __init__(self, model: str, detail: str) -> None:
        self.model = model
        self.detail = detail
        super().__init__(f"LiteLLM returned a malformed completion for model={model}: {detail}")


@dataclass(frozen=True)
class ChatCompletionResponse:
    """Parsed response from a chat completion call."""

    content: str
    finish_reason: str
    tokens_in: int
    tokens_out: int
    model: str
    cost_usd: float = 0.0


@dataclass(frozen=True)
class ScenarioConfig:
    """Per-scenario LLM call defaults (tag for routing, temperature for generation)."""

    tag: str
    temperature: float


# Tags match litellm_params.tags in the proxy config.
SCENARIO_DEFAULTS: dict[str, ScenarioConfig] = {
    "match": ScenarioConfig(tag="match", temperature=0.2),
}

_FALLBACK = ScenarioConfig(tag="", temperature=0.2)


def resolve_scenario(scenario: str) -> ScenarioConfig:
    """Look up scenario config, falling back to no-tag routing for unknown values."""
    return SCENARIO_DEFAULTS.get(scenario, _FALLBACK)


class LiteLLMClient:
    """HTTP client for the LiteLLM Proxy (OpenAI-compatible API)."""

    def __init__(self, base_url: str = "http://localhost:4000", api_key: str = "", timeout: float = 120.0) -> None:
        self._base_url = base_url.rstrip("/")
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(base_url=self._base_url, headers=headers, timeout=timeout)

    async def chat_completion(
        self,
        messages: list[dict[str, object]],
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        tags: list[str] | None = None,
        max_tokens: int | None = None,
        response_format: dict[str, object] | None = None,
    ) -> ChatCompletionResponse:
        """Send a chat completion request to LiteLLM.

        When *tags* is provided, LiteLLM routes to a model whose
        ``litellm_params.tags`` include at least one matching tag.

        When *response_format* is provided, it is forwarded to the LLM API
        to request structured JSON output (e.g. ``{"type": "json_schema", ...}``).

        Raises LLMError for status >= 400 and MalformedResponseError when a
        2xx body is not a JSON object; transport failures surface as
        ``httpx.HTTPError``.
        """
        payload: dict[str, object] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if tags:
            payload["tags"] = tags
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if response_format is not None:
            payload["response_format"] = response_format

        logger.debug(
            "chat_completion model=%s temperature=%.2f tags=%s messages=%d",
            model,
            temperature,
            tags,
            len(messages),
        )

        resp = await self._client.post("/v1/chat/completions", json=payload)
        if resp.status_code >= 400:
            body = resp.text
            logger.error(
                "LiteLLM error status=%d model=%s body=%s",
                resp.status_code,
                model,
                body[:1000],
            )
            raise LLMError(resp.status_code, model, body)
        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(model, f"body is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(model, f"expected a JSON object, got {type(data).__name__}")

        # Cost comes from the LiteLLM response header when available.
        try:
            cost = float(resp.headers.get("x-litellm-response-cost", "0"))
        except (ValueError, TypeError):
            cost = 0.0

        choices = data.get("choices", [])
        if not isinstance(choices, list) or len(choices) == 0:
            return ChatCompletionResponse(
                content="",
                finish_reason="stop",
                tokens_in=0,
                tokens_out=0,
                model=model,
                cost_usd=cost,
            )

        choice = choices[0]
        finish_reason = choice.get("finish_reason", "stop") if isinstance(choice, dict) else "stop"
        message = choice.get("message", {}) if isinstance(choice, dict) else {}
        content = (message.get("content", "") or "") if isinstance(message, dict) else ""

        usage = data.get("usage", {})
        tokens_in = usage.get("prompt_tokens", 0) if isinstance(usage, dict) else 0
        tokens_out = usage.get("completion_tokens", 0) if isinstance(usage, dict) else 0

        return ChatCompletionResponse(
            content=str(content),
            finish_reason=str(finish_reason or "stop"),
            tokens_in=int(tokens_in or 0),
            tokens_out=int(tokens_out or 0),
            model=model,
            cost_usd=cost,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
