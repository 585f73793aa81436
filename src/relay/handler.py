"""Transport-neutral chat request handling.

Decodes a raw request body into a conversation, runs the relay and
encodes the outcome as a status code and JSON body. Shared by the ASGI
app and the serverless entrypoint.
"""

import json
from typing import Any, NamedTuple, Optional

import httpx
from pydantic import ValidationError

from shared.config import OpenAISettings
from shared.errors import InvalidRequestError, RelayError, RelayInternalError
from shared.logging import get_logger, request_context
from shared.models import ChatMessage, ChatRequest, ChatResponse
from relay.gateway import ChatRelay

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}
HEADERS_JSON = {"Content-Type": "application/json", **CORS_HEADERS}

METHOD_NOT_ALLOWED_BODY = json.dumps({"error": "POST only"})


class HTTPResult(NamedTuple):
    """Status code and body to answer with."""
    status_code: int
    body: str


def parse_messages(raw_body: Optional[str | bytes]) -> list[ChatMessage]:
    """
    Decode the request body into a conversation.

    An empty body counts as ``{}``.

    Raises:
        RelayInternalError: If the body is not valid JSON
        InvalidRequestError: If ``messages`` is absent, empty or malformed
    """
    try:
        data = json.loads(raw_body or "{}")
    except ValueError as e:
        raise RelayInternalError(str(e)) from e

    messages = data.get("messages") if isinstance(data, dict) else None
    if not isinstance(messages, list) or not messages:
        raise InvalidRequestError("messages[] required")

    try:
        return ChatRequest(messages=messages).messages
    except ValidationError as e:
        raise InvalidRequestError("messages[] required") from e


async def handle_chat(
    raw_body: Optional[str | bytes],
    settings: OpenAISettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **relay_options: Any
) -> HTTPResult:
    """
    Handle one chat request end to end.

    The API key is checked before the body is looked at, so a missing key
    never leads to an upstream call.

    Args:
        raw_body: Raw request body
        settings: Provider settings to build the relay configuration from
        transport: Optional httpx transport for the upstream client
        **relay_options: Passed through to ChatRelay (poll timing, clock)

    Returns:
        Status code and JSON body
    """
    with request_context():
        try:
            config = settings.to_relay_config()
            messages = parse_messages(raw_body)

            relay = ChatRelay(config, transport=transport, **relay_options)
            reply = await relay.relay(messages)

            logger.info("Chat relayed", mode=relay.mode, reply_chars=len(reply))
            return HTTPResult(200, ChatResponse(reply=reply).model_dump_json())

        except RelayError as e:
            logger.warning(
                "Chat request failed",
                error_type=type(e).__name__,
                status_code=e.status_code,
                stage=getattr(e, "stage", None),
            )
            return HTTPResult(e.status_code, e.body)
        except Exception as e:
            logger.error("Chat request crashed", error_type=type(e).__name__, exc_info=True)
            return HTTPResult(500, RelayInternalError(str(e) or type(e).__name__).body)
