"""Structured JSON logging for the matching worker.

Every entry, whether emitted through structlog or through a stdlib logger
(``devmatch.llm``, ``devmatch.schemas.parser``), is rendered as one JSON line
{timestamp, level, logger, service, event, ...}. Entries logged while a match
request is handled also carry its ``request_id`` and ``project_id``; see
``request_context``.
"""

from __future__ import annotations

import logging
import queue
import sys
from contextlib import contextmanager
from logging.handlers import QueueHandler, QueueListener
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

_listener: QueueListener | None = None

# Applied to structlog and stdlib entries alike, on the thread that logs.
_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def setup_logging(service: str = "devmatch-worker", level: str = "info") -> None:
    """Route all logging through one queue listener that writes JSON to stdout.

    Rendering happens in the ``QueueHandler``; the listener thread only
    writes finished lines. Calling again replaces the previous listener.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    stop_logging()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            stamp_service(service),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
    )
    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=10_000)
    queue_handler = QueueHandler(log_queue)
    queue_handler.setFormatter(formatter)

    global _listener
    _listener = QueueListener(log_queue, logging.StreamHandler(sys.stdout))
    _listener.start()

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(queue_handler)
    root.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def stop_logging() -> None:
    """Flush and stop the queue listener. Safe to call more than once."""
    global _listener
    if _listener is not None:
        _listener.stop()
        _listener = None


@contextmanager
def request_context(request_id: str, project_id: str) -> Iterator[None]:
    """Tag every entry logged inside the block with the match request it serves.

    Covers the pipeline, the engine adapter and the LLM transport, none of
    which know the NATS request id. An empty *request_id* is not bound.
    """
    fields = {"project_id": project_id}
    if request_id:
        fields["request_id"] = request_id
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def stamp_service(service: str) -> structlog.types.Processor:
    """Return a processor that adds the service name unless the entry has one."""

    def processor(
        _logger: structlog.types.WrappedLogger,
        _method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return processor
