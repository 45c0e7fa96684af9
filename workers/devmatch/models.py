"""Domain models for the developer-matching pipeline.

Wire names are camelCase, attributes are snake_case. Every model accepts
either spelling on input and serializes camelCase with ``by_alias=True``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNNAMED_DEVELOPER = "Unnamed Developer"
EXPERIENCE_NOT_SPECIFIED = "Not specified"
NO_BIO = "No bio provided."

ROLE_DEVELOPER = "developer"
STATUS_ACTIVE = "active"


class WireModel(BaseModel):
    """Base for models exchanged with the directory, the engine, and NATS."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectRequest(WireModel):
    """A client project that needs developer matches."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    required_skills: tuple[str, ...] = ()
    availability: str = ""
    time_zone: str = ""


class RawUser(WireModel):
    """A roster entry as returned by the user directory."""

    id: str
    role: str
    account_status: str | None = None
    name: str | None = None
    skills: list[str] | None = None
    experience_level: str | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    bio: str | None = None


class DeveloperProfile(WireModel):
    """Read-only matching view of a developer account."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = UNNAMED_DEVELOPER
    skills: tuple[str, ...] = ()
    experience_level: str = EXPERIENCE_NOT_SPECIFIED
    hourly_rate: float | None = None
    bio: str = NO_BIO


class MatchRequest(WireModel):
    """Input handed to the ranking engine."""

    project_details: ProjectRequest
    available_developers: list[DeveloperProfile] = Field(default_factory=list)


class MatchCandidate(WireModel):
    """One recommended developer."""

    developer_id: str = Field(min_length=1, description="Id of a developer from availableDevelopers")
    name: str = Field(description="Display name of the developer")
    match_score: float | None = Field(default=None, ge=0.0, le=1.0, description="Fit score between 0 and 1")
    reasoning: str | None = Field(default=None, description="Why this developer fits the project")


class MatchResult(WireModel):
    """Ranked shortlist plus the overall explanation.

    An empty ``matched_developers`` list means no developer fits; the
    overall reasoning is mandatory either way.
    """

    matched_developers: list[MatchCandidate] = Field(
        default_factory=list,
        description="Best-fit developers, best first",
    )
    overall_reasoning: str = Field(min_length=1, description="Explanation of the selection or of its absence")

    @field_validator("overall_reasoning")
    @classmethod
    def _reasoning_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "overall_reasoning must not be blank"
            raise ValueError(msg)
        return value

    @classmethod
    def degraded(cls, reasoning: str) -> MatchResult:
        """Build a zero-candidate result carrying *reasoning*."""
        return cls(matched_developers=[], overall_reasoning=reasoning)


# --- NATS messages ---


class MatchingRequestMessage(WireModel):
    """Message received from NATS asking for developer matches."""

    request_id: str = ""
    project: ProjectRequest


class MatchingResultMessage(WireModel):
    """Result published back to NATS after matching."""

    request_id: str = ""
    project_id: str
    result: MatchResult
