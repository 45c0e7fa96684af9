"""Developer matching pipeline."""

from devmatch.matching.eligibility import filter_eligible, is_eligible, project_profile
from devmatch.matching.engine import (
    EngineUnavailableError,
    MatchingEngine,
    MatchingEngineError,
    SchemaViolationError,
)
from devmatch.matching.normalizer import normalize_result
from devmatch.matching.pipeline import DeveloperMatcher
from devmatch.matching.request import build_request

__all__ = [
    "DeveloperMatcher",
    "EngineUnavailableError",
    "MatchingEngine",
    "MatchingEngineError",
    "SchemaViolationError",
    "build_request",
    "filter_eligible",
    "is_eligible",
    "normalize_result",
    "project_profile",
]
