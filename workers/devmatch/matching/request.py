"""Match request assembly."""

from __future__ import annotations

from typing import TYPE_CHECKING

from devmatch.models import MatchRequest

if TYPE_CHECKING:
    from collections.abc import Sequence

    from devmatch.models import DeveloperProfile, ProjectRequest


def build_request(project: ProjectRequest, developers: Sequence[DeveloperProfile]) -> MatchRequest:
    """Pair the project with the eligible developers, both kept verbatim.

    The developer list keeps its ids and order, so the normalizer validates
    the engine reply against exactly what the engine was shown.
    """
    return MatchRequest(project_details=project, available_developers=list(developers))
