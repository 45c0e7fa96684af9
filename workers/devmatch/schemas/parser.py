"""Structured output parser: validates LLM JSON against Pydantic schemas."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from devmatch.llm import ChatCompletionResponse, LiteLLMClient

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class StructuredOutputError(ValueError):
    """Raised when the LLM reply cannot be validated against the schema."""

    def __init__(self, schema_name: str, detail: str) -> None:
        self.schema_name = schema_name
        self.detail = detail
        super().__init__(f"structured output for {schema_name} failed validation: {detail}")


class StructuredOutputParser:
    """Wraps LiteLLM response_format for structured JSON output with Pydantic validation.

    Usage:
        parser = StructuredOutputParser(llm_client)
        result = await parser.parse(
            messages=messages,
            schema=MatchResult,
            model="openai/gpt-4o",
        )

    One call per parse; LLM and transport errors propagate unchanged.
    """

    def __init__(self, llm: LiteLLMClient) -> None:
        self._llm = llm
        self.last_response: ChatCompletionResponse | None = None

    async def parse(
        self,
        messages: list[dict[str, object]],
        schema: type[T],
        model: str = "",
        temperature: float = 0.2,
        tags: list[str] | None = None,
    ) -> T:
        """Call the LLM with structured output and validate against *schema*.

        The JSON is validated by alias, so camelCase wire names are expected.
        Raises StructuredOutputError when the reply is empty, not JSON, or does
        not fit the schema.
        """
        kwargs: dict[str, object] = {}
        if model:
            kwargs["model"] = model
        response = await self._llm.chat_completion(
            messages=messages,
            temperature=temperature,
            tags=tags,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": schema.__name__,
                    "schema": pydantic_to_json_schema(schema),
                    # Optional fields are not expressible in strict mode.
                    "strict": False,
                },
            },
            **kwargs,
        )
        self.last_response = response

        content = strip_code_fence(response.content)
        if not content:
            raise StructuredOutputError(schema.__name__, "empty response")
        try:
            return schema.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("structured output validation failed schema=%s: %s", schema.__name__, str(exc)[:500])
            raise StructuredOutputError(schema.__name__, str(exc)) from exc


def strip_code_fence(content: str) -> str:
    """Remove a surrounding Markdown code fence some models add around JSON."""
    text = content.strip()
    if text.startswith("```") and text.endswith("```") and len(text) >= 6:
        text = text[3:-3].strip()
        if text.startswith("json"):
            text = text[4:]
    return text.strip()


def pydantic_to_json_schema(schema: type[BaseModel]) -> dict[str, object]:
    """Convert a Pydantic model to a JSON Schema dict suitable for LLM response_format."""
    raw = schema.model_json_schema(by_alias=True)
    _clean_schema(raw)
    return raw


def _clean_schema(schema: dict[str, object]) -> None:
    """Drop titles recursively; property descriptions are kept as hints for the model."""
    schema.pop("title", None)
    defs = schema.get("$defs")
    if isinstance(defs, dict):
        for defn in defs.values():
            if isinstance(defn, dict):
                _clean_schema(defn)
    props = schema.get("properties")
    if isinstance(props, dict):
        for prop in props.values():
            if isinstance(prop, dict):
                _clean_schema(prop)
    for key in ("items", "anyOf"):
        nested = schema.get(key)
        if isinstance(nested, dict):
            _clean_schema(nested)
        elif isinstance(nested, list):
            for item in nested:
                if isinstance(item, dict):
                    _clean_schema(item)
