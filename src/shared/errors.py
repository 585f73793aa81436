"""Error types for the chat relay.

Every failure that can reach the caller is a RelayError carrying the HTTP
status and body the transport should answer with.
"""

import json
from typing import Optional


class RelayError(Exception):
    """Base exception for failures surfaced to the caller."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self._body = body

    @property
    def body(self) -> str:
        """Response body for the caller."""
        if self._body:
            return self._body
        return json.dumps({"error": self.message})


class ConfigurationError(RelayError):
    """Required configuration (the API key) is missing."""
    status_code = 500


class InvalidRequestError(RelayError):
    """The inbound message list is absent, empty or malformed."""
    status_code = 400


class UpstreamStageError(RelayError):
    """
    An upstream HTTP step returned a non-2xx status.

    The upstream status and raw body are forwarded to the caller unmodified.
    An empty upstream body is replaced with a generic error object.
    """

    def __init__(self, stage: str, status_code: int, body: str = "") -> None:
        super().__init__(
            f"Upstream stage '{stage}' failed with status {status_code}",
            status_code=status_code or 500,
            body=body or json.dumps({"error": "Upstream error"}),
        )
        self.stage = stage


class RelayInternalError(RelayError):
    """Unexpected failure (network, JSON parsing, ...) wrapped at the boundary."""
    status_code = 500
