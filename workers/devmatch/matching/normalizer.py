"""Engine output normalization and the degraded results of the pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from devmatch.models import MatchResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from devmatch.models import DeveloperProfile, MatchCandidate

logger = structlog.get_logger()

NO_DEVELOPERS_AVAILABLE = "No developers are currently available for matching."
NO_RESULT = "Matching produced no result."
ENGINE_ERROR_PREFIX = "Matching engine error"
ROSTER_ERROR_PREFIX = "Could not load the developer roster"
UNEXPECTED_ERROR_PREFIX = "Matching failed unexpectedly"


def no_candidates_result() -> MatchResult:
    """Result for a roster with no eligible developers; the engine is not called."""
    return MatchResult.degraded(NO_DEVELOPERS_AVAILABLE)


def no_result() -> MatchResult:
    """Result for an engine reply that was empty, not JSON, or mis-shaped."""
    return MatchResult.degraded(NO_RESULT)


def engine_error_result(message: str) -> MatchResult:
    """Result for a failed engine call, quoting *message*."""
    return MatchResult.degraded(_with_detail(ENGINE_ERROR_PREFIX, message))


def roster_error_result(message: str) -> MatchResult:
    """Result for a roster that could not be read."""
    return MatchResult.degraded(_with_detail(ROSTER_ERROR_PREFIX, message))


def unexpected_error_result(message: str) -> MatchResult:
    """Result for any other failure inside the pipeline."""
    return MatchResult.degraded(_with_detail(UNEXPECTED_ERROR_PREFIX, message))


def normalize_result(result: MatchResult, developers: Iterable[DeveloperProfile]) -> MatchResult:
    """Enforce that every candidate references a submitted developer.

    Candidates with unknown ids are dropped with a warning, repeated ids keep
    their first occurrence, and the order of the rest is preserved. A result
    that needs no change is returned as is.
    """
    known = {d.id for d in developers}
    seen: set[str] = set()
    kept: list[MatchCandidate] = []
    unknown: list[str] = []
    duplicates: list[str] = []

    for candidate in result.matched_developers:
        if candidate.developer_id not in known:
            unknown.append(candidate.developer_id)
            continue
        if candidate.developer_id in seen:
            duplicates.append(candidate.developer_id)
            continue
        seen.add(candidate.developer_id)
        kept.append(candidate)

    if not unknown and not duplicates:
        return result

    if unknown:
        logger.warning("dropping candidates with unknown developer ids", unknown_ids=unknown)
    if duplicates:
        logger.warning("dropping duplicate candidates", duplicate_ids=duplicates)
    return result.model_copy(update={"matched_developers": kept})


def _with_detail(prefix: str, message: str) -> str:
    message = message.strip()
    return f"{prefix}: {message}" if message else f"{prefix}."
