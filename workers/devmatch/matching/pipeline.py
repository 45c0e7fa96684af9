"""Developer matching pipeline: roster -> eligibility -> engine -> normalized result."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from devmatch.directory import DirectoryError
from devmatch.matching.eligibility import filter_eligible
from devmatch.matching.engine import EngineUnavailableError, SchemaViolationError
from devmatch.matching.normalizer import (
    engine_error_result,
    no_candidates_result,
    no_result,
    normalize_result,
    roster_error_result,
    unexpected_error_result,
)
from devmatch.matching.request import build_request

if TYPE_CHECKING:
    from devmatch.directory import DirectoryReader
    from devmatch.matching.engine import MatchingEngine
    from devmatch.models import MatchResult, ProjectRequest

logger = structlog.get_logger()


class DeveloperMatcher:
    """Produces a ranked, explained developer shortlist for a project.

    Each call reads the live roster and calls the engine at most once. Every
    failure is returned as a zero-candidate MatchResult whose reasoning says
    what went wrong; ``match_developers`` never raises.
    """

    def __init__(self, directory: DirectoryReader, engine: MatchingEngine) -> None:
        self._directory = directory
        self._engine = engine

    async def match_developers(self, project: ProjectRequest) -> MatchResult:
        log = logger.bind(project_id=project.id)
        try:
            return await self._match(project, log)
        except Exception as exc:
            log.exception("matching failed unexpectedly")
            return unexpected_error_result(str(exc) or type(exc).__name__)

    async def _match(self, project: ProjectRequest, log: structlog.stdlib.BoundLogger) -> MatchResult:
        try:
            roster = await self._directory.get_all_users()
        except DirectoryError as exc:
            log.error("roster unavailable", error=str(exc))
            return roster_error_result(str(exc))

        developers = filter_eligible(roster)
        log.info("roster filtered", roster=len(roster), eligible=len(developers))
        if not developers:
            return no_candidates_result()

        request = build_request(project, developers)
        try:
            result = await self._engine.invoke(request)
        except EngineUnavailableError as exc:
            log.error("matching engine unavailable", error=str(exc))
            return engine_error_result(str(exc))
        except SchemaViolationError as exc:
            log.warning("matching engine returned no usable output", error=str(exc)[:500])
            return no_result()

        result = normalize_result(result, request.available_developers)
        log.info("matching completed", candidates=len(result.matched_developers))
        return result
