"""Roster readers: fetch every registered user for eligibility filtering."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog
from pydantic import ValidationError

from devmatch.models import RawUser

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = structlog.get_logger()


class DirectoryError(Exception):
    """Raised when the roster cannot be read."""


class DirectoryReader(Protocol):
    """Read-only full-roster fetch. No pagination, no filtering."""

    async def get_all_users(self) -> list[RawUser]: ...


def parse_roster(raw: object) -> list[RawUser]:
    """Validate roster entries one by one, skipping malformed ones.

    Accepts either a bare JSON array or an object with a ``users`` array.
    """
    if isinstance(raw, dict):
        raw = raw.get("users")
    if not isinstance(raw, list):
        msg = "roster payload is not a list of users"
        raise DirectoryError(msg)

    users: list[RawUser] = []
    for index, entry in enumerate(raw):
        try:
            users.append(RawUser.model_validate(entry))
        except ValidationError as exc:
            logger.warning("skipping malformed roster entry", index=index, errors=exc.error_count())
    return users


class HTTPDirectoryReader:
    """Reads the roster from the user directory service (``GET /v1/users``)."""

    def __init__(self, base_url: str = "http://localhost:8080", api_key: str = "", timeout: float = 30.0) -> None:
        headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), headers=headers, timeout=timeout)

    async def get_all_users(self) -> list[RawUser]:
        try:
            resp = await self._client.get("/v1/users")
        except httpx.HTTPError as exc:
            msg = f"directory request failed: {str(exc) or type(exc).__name__}"
            raise DirectoryError(msg) from exc

        if resp.status_code >= 400:
            msg = f"directory returned {resp.status_code}: {resp.text[:200]}"
            raise DirectoryError(msg)

        try:
            payload = resp.json()
        except ValueError as exc:
            msg = "directory returned a non-JSON body"
            raise DirectoryError(msg) from exc

        users = parse_roster(payload)
        logger.debug("roster fetched", users=len(users))
        return users

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class StaticDirectoryReader:
    """Serves a fixed roster, e.g. for local development and tests."""

    def __init__(self, users: Iterable[RawUser] = ()) -> None:
        self._users = list(users)

    @classmethod
    def from_file(cls, path: str | Path) -> StaticDirectoryReader:
        """Load a roster from a JSON file (array or ``{"users": [...]}``)."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"cannot read roster file {path}: {exc}"
            raise DirectoryError(msg) from exc
        return cls(parse_roster(raw))

    async def get_all_users(self) -> list[RawUser]:
        # Copies, so callers never share mutable entries between invocations.
        return [u.model_copy(deep=True) for u in self._users]

    async def close(self) -> None:
        """Nothing to release."""
