"""Ranking engine adapter: marshals a MatchRequest to the LLM and validates the reply."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from devmatch.llm import DEFAULT_MODEL, LLMError, MalformedResponseError, resolve_scenario
from devmatch.matching.prompts import render_messages
from devmatch.models import MatchResult
from devmatch.schemas.parser import StructuredOutputError, StructuredOutputParser

if TYPE_CHECKING:
    from devmatch.llm import LiteLLMClient
    from devmatch.models import MatchRequest

logger = structlog.get_logger()

MATCH_SCENARIO = "match"


class MatchingEngineError(Exception):
    """Base class for failures of a single engine invocation."""


class EngineUnavailableError(MatchingEngineError):
    """The call to the engine failed (transport, timeout, quota, auth)."""


class SchemaViolationError(MatchingEngineError):
    """The engine replied, but not with a valid MatchResult (or not with JSON at all)."""


class MatchingEngine:
    """Invokes the ranking engine once per request. Never retries."""

    def __init__(self, llm: LiteLLMClient, model: str = DEFAULT_MODEL, scenario: str = MATCH_SCENARIO) -> None:
        self._llm = llm
        self._model = model
        self._scenario = resolve_scenario(scenario)

    async def invoke(self, request: MatchRequest) -> MatchResult:
        """Return the engine's validated MatchResult.

        Raises EngineUnavailableError or SchemaViolationError. Candidate ids
        are not checked against the request here; see ``normalize_result``.
        """
        parser = StructuredOutputParser(self._llm)
        tags = [self._scenario.tag] if self._scenario.tag else None
        log = logger.bind(project_id=request.project_details.id, model=self._model)

        try:
            result = await parser.parse(
                messages=render_messages(request),
                schema=MatchResult,
                model=self._model,
                temperature=self._scenario.temperature,
                tags=tags,
            )
        except LLMError as exc:
            raise EngineUnavailableError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise EngineUnavailableError(str(exc) or type(exc).__name__) from exc
        except MalformedResponseError as exc:
            raise SchemaViolationError(exc.detail) from exc
        except StructuredOutputError as exc:
            raise SchemaViolationError(exc.detail) from exc
        finally:
            if parser.last_response is not None:
                log.info(
                    "engine call finished",
                    tokens_in=parser.last_response.tokens_in,
                    tokens_out=parser.last_response.tokens_out,
                    cost_usd=parser.last_response.cost_usd,
                    finish_reason=parser.last_response.finish_reason,
                )

        log.debug("engine returned matches", candidates=len(result.matched_developers))
        return result
