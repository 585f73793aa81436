"""Base class for conversation drivers.

A driver speaks one upstream calling convention and returns the raw
payload the normalizer turns into a reply.
"""

from abc import ABC, abstractmethod
from typing import Union

from shared.models import ChatMessage, ResponsePayload, ThreadReplyPayload
from upstream.client import UpstreamClient

DriverPayload = Union[ThreadReplyPayload, ResponsePayload]


class ConversationDriver(ABC):
    """
    Abstract base class for upstream calling conventions.

    Driver Rules:
    - Upstream calls are made strictly in sequence, each at most once
    - A non-2xx answer aborts the whole protocol (UpstreamStageError)
    - Reply text extraction is left to the normalizer
    """

    name: str = "driver"

    def __init__(self, client: UpstreamClient) -> None:
        self.client = client

    @abstractmethod
    async def run(self, messages: list[ChatMessage]) -> DriverPayload:
        """
        Relay the conversation upstream.

        Args:
            messages: Conversation in order, non-empty

        Returns:
            Raw reply payload for the normalizer
        """
        pass
