"""End-to-end tests for the developer matching pipeline."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from devmatch.directory import DirectoryError, StaticDirectoryReader
from devmatch.llm import LLMError
from devmatch.matching import DeveloperMatcher, EngineUnavailableError, MatchingEngine, SchemaViolationError
from devmatch.matching.normalizer import NO_DEVELOPERS_AVAILABLE, NO_RESULT
from devmatch.models import MatchCandidate, MatchResult, ProjectRequest, RawUser
from tests.fake_llm import FakeLLM, reply


def _mock_engine(**kwargs: object) -> MagicMock:
    engine = MagicMock(spec=MatchingEngine)
    engine.invoke = AsyncMock(**kwargs)
    return engine


async def test_success_path(project: ProjectRequest, directory: StaticDirectoryReader) -> None:
    """A valid engine answer over eligible developers is returned unchanged."""
    answer = {
        "matchedDevelopers": [
            {"developerId": "d1", "name": "David Lee", "matchScore": 0.9, "reasoning": "React and Node"},
            {"developerId": "d3", "name": "Eva Chen", "matchScore": 0.3},
        ],
        "overallReasoning": "David is the strongest fit.",
    }
    llm = FakeLLM([reply(answer)])
    matcher = DeveloperMatcher(directory, MatchingEngine(llm))  # type: ignore[arg-type]

    result = await matcher.match_developers(project)

    assert [c.developer_id for c in result.matched_developers] == ["d1", "d3"]
    assert result.matched_developers[0].reasoning == "React and Node"
    assert result.overall_reasoning == "David is the strongest fit."
    assert len(llm.calls) == 1


async def test_only_eligible_developers_reach_the_engine(
    project: ProjectRequest, directory: StaticDirectoryReader
) -> None:
    """Clients, pending, and suspended accounts are never shown to the engine."""
    engine = _mock_engine(return_value=MatchResult.degraded("none fit"))
    await DeveloperMatcher(directory, engine).match_developers(project)

    request = engine.invoke.call_args.args[0]
    assert [d.id for d in request.available_developers] == ["d1", "d3"]
    assert request.project_details is project


@pytest.mark.parametrize(
    "roster",
    [
        [],
        [RawUser(id="c1", role="client", account_status="active")],
        [
            RawUser(id="d1", role="developer", account_status="pending_approval"),
            RawUser(id="d2", role="developer"),
            RawUser(id="a1", role="admin", account_status="active"),
        ],
    ],
)
async def test_no_eligible_developers_skips_engine(project: ProjectRequest, roster: list[RawUser]) -> None:
    """Without eligible developers the engine is never called."""
    engine = _mock_engine()
    result = await DeveloperMatcher(StaticDirectoryReader(roster), engine).match_developers(project)

    assert result.matched_developers == []
    assert result.overall_reasoning == NO_DEVELOPERS_AVAILABLE
    assert engine.invoke.call_count == 0


async def test_empty_roster_makes_no_llm_call(project: ProjectRequest) -> None:
    """An empty roster finishes without any request to the LLM."""
    llm = FakeLLM([])
    matcher = DeveloperMatcher(StaticDirectoryReader([]), MatchingEngine(llm))  # type: ignore[arg-type]
    result = await matcher.match_developers(project)

    assert result.overall_reasoning == NO_DEVELOPERS_AVAILABLE
    assert llm.calls == []


async def test_engine_unavailable_includes_error_text(
    project: ProjectRequest, directory: StaticDirectoryReader
) -> None:
    """An engine outage yields no candidates and the underlying message."""
    llm = FakeLLM([LLMError(503, "groq/llama", "upstream overloaded")])
    result = await DeveloperMatcher(directory, MatchingEngine(llm)).match_developers(project)  # type: ignore[arg-type]

    assert result.matched_developers == []
    assert result.overall_reasoning.startswith("Matching engine error: ")
    assert "upstream overloaded" in result.overall_reasoning
    assert len(llm.calls) == 1


async def test_engine_unavailable_from_mock(project: ProjectRequest, directory: StaticDirectoryReader) -> None:
    """An adapter raising EngineUnavailableError is absorbed."""
    engine = _mock_engine(side_effect=EngineUnavailableError("connection refused"))
    result = await DeveloperMatcher(directory, engine).match_developers(project)
    assert result.matched_developers == []
    assert "connection refused" in result.overall_reasoning


async def test_transport_timeout(project: ProjectRequest, directory: StaticDirectoryReader) -> None:
    """Transport timeouts count as engine unavailability."""
    llm = FakeLLM([httpx.ConnectTimeout("timed out")])
    result = await DeveloperMatcher(directory, MatchingEngine(llm)).match_developers(project)  # type: ignore[arg-type]
    assert result.overall_reasoning == "Matching engine error: timed out"


@pytest.mark.parametrize("content", ["", "{}", "not json", '{"matchedDevelopers": "d1", "overallReasoning": "x"}'])
async def test_schema_violation_yields_no_result(
    project: ProjectRequest, directory: StaticDirectoryReader, content: str
) -> None:
    """Unusable engine output is reported as no result."""
    llm = FakeLLM([reply(content)])
    result = await DeveloperMatcher(directory, MatchingEngine(llm)).match_developers(project)  # type: ignore[arg-type]

    assert result.matched_developers == []
    assert result.overall_reasoning == NO_RESULT


async def test_schema_violation_from_mock(project: ProjectRequest, directory: StaticDirectoryReader) -> None:
    """An adapter raising SchemaViolationError is absorbed."""
    engine = _mock_engine(side_effect=SchemaViolationError("missing overallReasoning"))
    result = await DeveloperMatcher(directory, engine).match_developers(project)
    assert result.overall_reasoning == NO_RESULT


async def test_unknown_candidate_ids_are_dropped(project: ProjectRequest, directory: StaticDirectoryReader) -> None:
    """Ids the engine invents, or ineligible ids, never reach the caller."""
    answer = MatchResult(
        matched_developers=[
            MatchCandidate(developer_id="d5", name="Grace Kim"),
            MatchCandidate(developer_id="d1", name="David Lee"),
            MatchCandidate(developer_id="dev-42", name="Made Up"),
        ],
        overall_reasoning="React developers.",
    )
    engine = _mock_engine(return_value=answer)
    result = await DeveloperMatcher(directory, engine).match_developers(project)

    assert [c.developer_id for c in result.matched_developers] == ["d1"]
    assert result.overall_reasoning == "React developers."


async def test_roster_unavailable(project: ProjectRequest) -> None:
    """A directory failure is reported without calling the engine."""
    directory = MagicMock()
    directory.get_all_users = AsyncMock(side_effect=DirectoryError("directory returned 502: bad gateway"))
    engine = _mock_engine()

    result = await DeveloperMatcher(directory, engine).match_developers(project)

    assert result.matched_developers == []
    assert result.overall_reasoning == "Could not load the developer roster: directory returned 502: bad gateway"
    engine.invoke.assert_not_called()


async def test_unexpected_error_never_escapes(project: ProjectRequest, directory: StaticDirectoryReader) -> None:
    """Any other exception becomes a degraded result."""
    engine = _mock_engine(side_effect=RuntimeError("kaboom"))
    result = await DeveloperMatcher(directory, engine).match_developers(project)

    assert result.matched_developers == []
    assert result.overall_reasoning == "Matching failed unexpectedly: kaboom"


async def test_roster_is_fetched_on_every_call(project: ProjectRequest, roster: list[RawUser]) -> None:
    """No caching: each invocation reads the live roster again."""
    directory = MagicMock()
    directory.get_all_users = AsyncMock(side_effect=[roster, []])
    engine = _mock_engine(return_value=MatchResult.degraded("none fit"))
    matcher = DeveloperMatcher(directory, engine)

    first = await matcher.match_developers(project)
    second = await matcher.match_developers(project)

    assert first.overall_reasoning == "none fit"
    assert second.overall_reasoning == NO_DEVELOPERS_AVAILABLE
    assert directory.get_all_users.call_count == 2
    assert engine.invoke.call_count == 1
