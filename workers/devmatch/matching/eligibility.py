"""Eligibility filter and profile projection for the matching view."""

from __future__ import annotations

from typing import TYPE_CHECKING

from devmatch.models import (
    EXPERIENCE_NOT_SPECIFIED,
    NO_BIO,
    ROLE_DEVELOPER,
    STATUS_ACTIVE,
    UNNAMED_DEVELOPER,
    DeveloperProfile,
    RawUser,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


def is_eligible(user: RawUser) -> bool:
    """True for active developer accounts. A missing status is not active."""
    return user.role == ROLE_DEVELOPER and user.account_status == STATUS_ACTIVE


def project_profile(user: RawUser) -> DeveloperProfile:
    """Narrow a roster entry to the fields the engine sees, filling defaults."""
    return DeveloperProfile(
        id=user.id,
        name=_or_default(user.name, UNNAMED_DEVELOPER),
        skills=tuple(user.skills or ()),
        experience_level=_or_default(user.experience_level, EXPERIENCE_NOT_SPECIFIED),
        hourly_rate=user.hourly_rate,
        bio=_or_default(user.bio, NO_BIO),
    )


def filter_eligible(all_profiles: Iterable[RawUser]) -> list[DeveloperProfile]:
    """Keep eligible entries in roster order and project each one."""
    return [project_profile(user) for user in all_profiles if is_eligible(user)]


def _or_default(value: str | None, default: str) -> str:
    if value is None or not value.strip():
        return default
    return value
