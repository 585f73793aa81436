"""Shared models, configuration, errors and logging for the chat relay."""

from shared.models import (
    ChatMessage,
    RelayConfig,
    Run,
    RunStatus,
    Thread,
    REPLY_PLACEHOLDER,
)
from shared.errors import (
    ConfigurationError,
    InvalidRequestError,
    RelayError,
    RelayInternalError,
    UpstreamStageError,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "ChatMessage",
    "RelayConfig",
    "Run",
    "RunStatus",
    "Thread",
    "REPLY_PLACEHOLDER",
    "ConfigurationError",
    "InvalidRequestError",
    "RelayError",
    "RelayInternalError",
    "UpstreamStageError",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
