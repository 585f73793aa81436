"""Serverless entrypoint.

Handles Netlify / AWS API Gateway style events with the same semantics as
the ASGI app:

    {"httpMethod": "POST", "body": "{\"messages\": [...]}"}

Returns ``{"statusCode", "headers", "body"}`` with the CORS header table
on every response.
"""

import asyncio
import base64
from functools import lru_cache
from typing import Any, Optional

from shared.config import Settings, get_settings
from shared.errors import RelayInternalError
from shared.logging import get_logger, setup_logging
from relay.handler import HEADERS_JSON, METHOD_NOT_ALLOWED_BODY, HTTPResult, handle_chat

logger = get_logger(__name__)


@lru_cache
def _configure_logging(log_level: str) -> None:
    # Function platforms collect stdout line by line
    setup_logging(log_level, json_output=True)


def _event_method(event: dict[str, Any]) -> str:
    method = event.get("httpMethod")
    if not method:
        # API Gateway HTTP API (payload format 2.0)
        method = ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return (method or "POST").upper()


def _event_body(event: dict[str, Any]) -> Optional[str]:
    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return body


def _response(result: HTTPResult) -> dict[str, Any]:
    return {
        "statusCode": result.status_code,
        "headers": dict(HEADERS_JSON),
        "body": result.body,
    }


def handler(event: dict[str, Any], context: Any = None, settings: Optional[Settings] = None) -> dict[str, Any]:
    """
    Handle one function invocation.

    Args:
        event: Platform HTTP event
        context: Platform context (unused)
        settings: Application settings; loaded from the environment when omitted

    Returns:
        Platform HTTP response
    """
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    method = _event_method(event)
    if method == "OPTIONS":
        return _response(HTTPResult(200, ""))
    if method != "POST":
        return _response(HTTPResult(405, METHOD_NOT_ALLOWED_BODY))

    try:
        body = _event_body(event)
    except ValueError as e:
        logger.warning("Undecodable event body", error=str(e))
        return _response(HTTPResult(500, RelayInternalError(str(e)).body))

    result = asyncio.run(handle_chat(body, settings.openai))
    return _response(result)
