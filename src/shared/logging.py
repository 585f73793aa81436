"""Structured logging for the chat relay.

Every event is a structlog key/value record. Secrets are masked before an
event is rendered, and each relayed request carries a ``request_id``.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor

# Event keys whose values must never reach the log output
SENSITIVE_KEYS = {"api_key", "apikey", "authorization", "token", "secret", "password"}

# Third-party loggers that log every upstream call at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask sensitive values in the event dict."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = "[REDACTED]"
    return event_dict


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: Minimum level name, e.g. ``"INFO"``
        json_output: One JSON object per line (serverless, production)
            instead of colored console lines
    """
    level = getattr(logging, log_level.upper())
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger for a relay module."""
    return structlog.get_logger(name)


@contextmanager
def request_context(**context: Any) -> Iterator[str]:
    """
    Tag every event logged inside the block with a fresh ``request_id``.

    Extra keyword values are bound alongside it. The bound values are
    removed again on exit, even when the block raises.

    Yields:
        The generated request id
    """
    request_id = str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(request_id=request_id, **context)
    try:
        yield request_id
    finally:
        structlog.contextvars.unbind_contextvars("request_id", *context)
