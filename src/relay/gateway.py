"""Chat relay - core orchestration.

Selects the upstream calling convention from the configuration, runs the
matching driver and normalizes its payload into a single reply string.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import httpx

from shared.errors import InvalidRequestError, RelayError, RelayInternalError
from shared.logging import get_logger
from shared.models import ChatMessage, RelayConfig
from upstream.client import UpstreamClient
from relay.assistants import AssistantsDriver
from relay.base import ConversationDriver
from relay.normalizer import normalize_reply
from relay.polling import POLL_INTERVAL_SECONDS, POLL_TIMEOUT_SECONDS
from relay.responses import ResponsesDriver

logger = get_logger(__name__)


class ChatRelay:
    """
    Relays one conversation to the provider and returns one reply.

    The relay holds no state between calls: every call opens its own
    upstream client, and on the Assistants path its own thread.
    """

    def __init__(
        self,
        config: RelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_timeout: float = POLL_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        """
        Initialize the relay.

        Args:
            config: Relay configuration (API key, assistant, model)
            transport: Optional httpx transport for the upstream client
            poll_interval: Delay between run status checks in seconds
            poll_timeout: Ceiling on run polling in seconds
            clock: Monotonic clock used by the poller
            sleep: Coroutine used by the poller to wait
        """
        self.config = config
        self._transport = transport
        self._poll_interval = poll_interval
        self._poll_timeout = poll_timeout
        self._clock = clock
        self._sleep = sleep

    @property
    def mode(self) -> str:
        """Name of the calling convention this configuration selects."""
        return AssistantsDriver.name if self.config.uses_assistants else ResponsesDriver.name

    def select_driver(self, client: UpstreamClient) -> ConversationDriver:
        """Pick the driver: Assistants when an assistant is configured, else Responses."""
        if self.config.uses_assistants:
            return AssistantsDriver(
                client,
                assistant_id=self.config.assistant_id,
                poll_interval=self._poll_interval,
                poll_timeout=self._poll_timeout,
                clock=self._clock,
                sleep=self._sleep,
            )
        return ResponsesDriver(client, model=self.config.model)

    async def relay(self, messages: list[ChatMessage]) -> str:
        """
        Relay a conversation and return the reply.

        Args:
            messages: Conversation in order

        Returns:
            Reply text, never empty

        Raises:
            InvalidRequestError: If the conversation is empty
            UpstreamStageError: If an upstream step answers with a non-2xx status
            RelayInternalError: On any other failure
        """
        if not messages:
            raise InvalidRequestError("messages[] required")

        try:
            async with UpstreamClient.from_config(self.config, transport=self._transport) as client:
                driver = self.select_driver(client)
                logger.info("Relaying conversation", mode=driver.name, message_count=len(messages))
                payload = await driver.run(messages)

        except RelayError:
            raise
        except Exception as e:
            logger.error("Relay failed", error=str(e), error_type=type(e).__name__, exc_info=True)
            raise RelayInternalError(str(e) or type(e).__name__) from e

        return normalize_reply(payload)
