"""NATS JetStream consumer serving developer-match requests.

``main()`` wires settings, logging, the roster reader, the engine and the
pipeline, then consumes ``matching.request`` until SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

import nats
import structlog
from pydantic import ValidationError

from devmatch.config import WorkerSettings
from devmatch.directory import HTTPDirectoryReader, StaticDirectoryReader
from devmatch.llm import LiteLLMClient
from devmatch.logger import request_context, setup_logging, stop_logging
from devmatch.matching import DeveloperMatcher, MatchingEngine
from devmatch.models import MatchingRequestMessage, MatchingResultMessage

if TYPE_CHECKING:
    import nats.aio.msg
    from nats.aio.client import Client as NATSClient
    from nats.js.client import JetStreamContext

    from devmatch.directory import DirectoryReader

logger = structlog.get_logger()

STREAM_NAME = "DEVMATCH"
STREAM_SUBJECTS = ["matching.>"]
SUBJECT_MATCH_REQUEST = "matching.request"
SUBJECT_MATCH_RESULT = "matching.result"
HEADER_REQUEST_ID = "X-Request-ID"


def build_directory(settings: WorkerSettings) -> HTTPDirectoryReader | StaticDirectoryReader:
    """Pick the roster source: a static file when configured, else the directory service."""
    if settings.roster_file:
        return StaticDirectoryReader.from_file(settings.roster_file)
    return HTTPDirectoryReader(
        base_url=settings.directory_url,
        api_key=settings.directory_api_key,
        timeout=settings.directory_timeout,
    )


class MatchConsumer:
    """Consumes match requests from NATS JetStream and publishes match results."""

    def __init__(
        self,
        matcher: DeveloperMatcher,
        nats_url: str = "nats://localhost:4222",
        closeables: list[object] | None = None,
    ) -> None:
        self.nats_url = nats_url
        self._matcher = matcher
        self._closeables = closeables or []
        self._nc: NATSClient | None = None
        self._js: JetStreamContext | None = None
        self._running = False

    async def start(self) -> None:
        """Connect to NATS, ensure the stream exists, and process requests."""
        self._nc = await nats.connect(self.nats_url)
        self._js = self._nc.jetstream()
        self._running = True

        logger.info("connected to NATS", url=self.nats_url)

        try:
            await self._js.find_stream_name_by_subject(STREAM_SUBJECTS[0])
        except nats.js.errors.NotFoundError:
            await self._js.add_stream(name=STREAM_NAME, subjects=STREAM_SUBJECTS)
            logger.info("created JetStream stream", stream=STREAM_NAME)

        sub = await self._js.subscribe(SUBJECT_MATCH_REQUEST, stream=STREAM_NAME, manual_ack=True)
        logger.info("subscribed", subject=SUBJECT_MATCH_REQUEST)

        while self._running:
            try:
                msg = await asyncio.wait_for(sub.next_msg(), timeout=1.0)
            except TimeoutError:
                continue
            except Exception:
                if self._running:
                    logger.exception("error receiving message", subject=SUBJECT_MATCH_REQUEST)
                break

            await self._handle_match_request(msg)

    async def _handle_match_request(self, msg: nats.aio.msg.Msg) -> None:
        """Run the pipeline for one request, publish the result, then ack."""
        try:
            request = MatchingRequestMessage.model_validate_json(msg.data)
        except ValidationError as exc:
            logger.warning("invalid match request", errors=exc.error_count())
            await msg.nak()
            return

        request_id = request.request_id
        if not request_id and msg.headers:
            request_id = msg.headers.get(HEADER_REQUEST_ID, "")

        with request_context(request_id, request.project.id):
            logger.info("received match request", required_skills=list(request.project.required_skills))

            result = await self._matcher.match_developers(request.project)
            reply = MatchingResultMessage(request_id=request_id, project_id=request.project.id, result=result)

            try:
                if self._js is not None:
                    headers = {HEADER_REQUEST_ID: request_id} if request_id else None
                    await self._js.publish(
                        SUBJECT_MATCH_RESULT,
                        reply.model_dump_json(by_alias=True).encode(),
                        headers=headers,
                    )
            except Exception:
                logger.exception("failed to publish match result")
                await msg.nak()
                return

            await msg.ack()
            logger.info("match result published", candidates=len(result.matched_developers))

    async def stop(self) -> None:
        """Gracefully shut down: drain NATS with timeout, then close clients.

        Clients stay open until NATS has drained.
        """
        self._running = False
        logger.info("stopping consumer")

        if self._nc is not None and self._nc.is_connected:
            try:
                await asyncio.wait_for(self._nc.drain(), timeout=10.0)
            except TimeoutError:
                logger.warning("NATS drain timed out after 10s, closing connection")
                await self._nc.close()

        for resource in self._closeables:
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

        logger.info("consumer stopped")
        stop_logging()


async def main() -> None:
    """Entry point for running the consumer."""
    settings = WorkerSettings()
    setup_logging(service=settings.log_service, level=settings.log_level)

    llm = LiteLLMClient(
        base_url=settings.litellm_url,
        api_key=settings.litellm_api_key,
        timeout=settings.engine_timeout,
    )
    directory: DirectoryReader = build_directory(settings)
    matcher = DeveloperMatcher(directory=directory, engine=MatchingEngine(llm, model=settings.match_model))
    consumer = MatchConsumer(matcher, nats_url=settings.nats_url, closeables=[llm, directory])

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(consumer.stop()))

    await consumer.start()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()


__all__ = ["MatchConsumer", "build_directory", "main", "run"]
