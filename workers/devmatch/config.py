"""Worker configuration loaded from environment variables."""

from __future__ import annotations

import os

DEFAULT_MATCH_MODEL = "groq/llama-3.3-70b-versatile"


def resolve_match_model(explicit: str | None = None) -> str:
    """Resolve the engine model using explicit value, env vars, or the default."""
    if explicit:
        return explicit
    return os.environ.get("DEVMATCH_MATCH_MODEL") or os.environ.get("DEVMATCH_DEFAULT_MODEL", DEFAULT_MATCH_MODEL)


class WorkerSettings:
    """Configuration for the matching worker, loaded from environment variables.

    Prefix: DEVMATCH_ for worker-specific settings.
    Falls back to shared env vars (NATS_URL, LITELLM_URL) for infrastructure.
    """

    nats_url: str
    litellm_url: str
    litellm_api_key: str
    directory_url: str
    directory_api_key: str
    directory_timeout: float
    roster_file: str
    match_model: str
    engine_timeout: float
    log_level: str
    log_service: str

    def __init__(self) -> None:
        self.nats_url = os.environ.get("NATS_URL", "nats://localhost:4222")
        self.litellm_url = os.environ.get("LITELLM_URL", "http://localhost:4000")
        self.litellm_api_key = os.environ.get("LITELLM_MASTER_KEY", "")
        self.directory_url = os.environ.get("DEVMATCH_DIRECTORY_URL", "http://localhost:8080")
        self.directory_api_key = os.environ.get("DEVMATCH_DIRECTORY_API_KEY", "")
        self.directory_timeout = float(os.environ.get("DEVMATCH_DIRECTORY_TIMEOUT", "30"))
        # When set, the roster is read from this JSON file instead of the directory service.
        self.roster_file = os.environ.get("DEVMATCH_ROSTER_FILE", "")
        self.match_model = resolve_match_model()
        self.engine_timeout = float(os.environ.get("DEVMATCH_ENGINE_TIMEOUT", "120"))
        self.log_level = os.environ.get("DEVMATCH_WORKER_LOG_LEVEL", "info")
        self.log_service = os.environ.get("DEVMATCH_WORKER_LOG_SERVICE", "devmatch-worker")
