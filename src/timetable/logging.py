"""structlog setup for the service and its scripts.

Console rendering for local runs, JSON lines when LOG_JSON is set. Every
module logs through get_logger(); request handlers wrap their work in
request_context() so each line carries the method and path.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib loggers (redis, http.server) to stderr.

    Args:
        json_output: Emit JSON lines instead of coloured console output.
        log_level: Minimum level name; unknown names fall back to INFO.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger bound with the calling module's name."""
    return structlog.get_logger(name)


@contextmanager
def request_context(method: str, path: str) -> Iterator[None]:
    """Attach method/path to every log line emitted while handling a request."""
    structlog.contextvars.bind_contextvars(method=method, path=path)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("method", "path")
