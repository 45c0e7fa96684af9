"""Shared fixtures for the workers test suite."""

from __future__ import annotations

import pytest

from devmatch.directory import StaticDirectoryReader
from devmatch.models import ProjectRequest, RawUser


@pytest.fixture
def project() -> ProjectRequest:
    """A typical client project."""
    return ProjectRequest(
        id="proj-1",
        name="Blog Platform",
        description="Multi-author blog with comments and a headless CMS.",
        required_skills=("React", "Node"),
        availability="Weekdays, 20h/week, launch in 6 weeks",
        time_zone="Europe/Berlin",
    )


@pytest.fixture
def roster() -> list[RawUser]:
    """A mixed roster: two eligible developers, one pending, one client, one suspended."""
    return [
        RawUser(
            id="d1",
            role="developer",
            account_status="active",
            name="David Lee",
            skills=["React", "Node.js", "GraphQL"],
            experience_level="senior",
            hourly_rate=85,
            bio="Full-stack developer.",
        ),
        RawUser(id="d2", role="client", account_status="active", name="Alice Johnson"),
        RawUser(id="d3", role="developer", account_status="active", name="Eva Chen", skills=["Python", "Django"]),
        RawUser(id="d4", role="developer", account_status="pending_approval", name="Frank Miller"),
        RawUser(id="d5", role="developer", account_status="suspended", name="Grace Kim", skills=["React"]),
    ]


@pytest.fixture
def directory(roster: list[RawUser]) -> StaticDirectoryReader:
    """A static directory serving the mixed roster."""
    return StaticDirectoryReader(roster)
