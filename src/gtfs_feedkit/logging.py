"""structlog setup for gtfs-feedkit.

Library modules only call `get_logger`; nothing is configured on import. The
command line calls `configure_logging` once, then wraps each command in
`feed_context` so decode and load events carry the feed they came from:

    static_feed_invalid  command=static target=gtfs.zip violations=3
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog

# Libraries whose INFO chatter would drown out feed events
QUIET_LOGGERS = ("httpx", "httpcore", "tenacity")


def _renderer(log_format: str, stream: TextIO) -> structlog.types.Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "text",
    stream: TextIO | None = None,
) -> None:
    """Route structlog events and stdlib records through one handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_format: 'json' for machine-readable lines, 'text' for a console.
        stream: Destination for log lines (default: stderr, keeping stdout
            free for command output).
    """
    stream = stream or sys.stderr
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format, stream),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def feed_context(**context: object) -> Iterator[None]:
    """Attach feed identifiers (command, target, source) to events logged inside."""
    with structlog.contextvars.bound_contextvars(**context):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
