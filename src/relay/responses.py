"""Single-shot driver for the Responses API."""

from typing import Any

from shared.logging import get_logger
from shared.models import ChatMessage, ResponsePayload
from upstream.client import UpstreamClient
from relay.base import ConversationDriver

logger = get_logger(__name__)


def build_response_request(messages: list[ChatMessage], model: str) -> dict[str, Any]:
    """
    Build the Responses API request body.

    Each message keeps its position and role; content is wrapped in a
    single text part.
    """
    return {
        "model": model,
        "input": [
            {
                "role": message.role or "user",
                "content": [{"type": "text", "text": message.content}],
            }
            for message in messages
        ],
    }


class ResponsesDriver(ConversationDriver):
    """Sends the whole conversation in one call."""

    name = "responses"

    def __init__(self, client: UpstreamClient, model: str) -> None:
        super().__init__(client)
        self.model = model

    async def run(self, messages: list[ChatMessage]) -> ResponsePayload:
        """Create a response and return its body."""
        body = build_response_request(messages, self.model)
        data = await self.client.post("create_response", "/responses", json=body)

        logger.debug(
            "Response received",
            model=self.model,
            response_id=data.get("id"),
            status=data.get("status"),
        )
        return ResponsePayload.model_validate(data)
