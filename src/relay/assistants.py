"""Stateful conversation driver for the Assistants API.

Protocol, strictly in order:
1. create a thread
2. post the flattened conversation as one user message
3. start a run of the configured assistant
4. poll the run until it is terminal or the poll ceiling passes
5. read the most recent assistant message off the thread

The thread is created fresh for every request and never reused.
"""

import asyncio
import time
from typing import Awaitable, Callable

from shared.logging import get_logger
from shared.models import (
    ChatMessage,
    Run,
    Thread,
    ThreadMessageList,
    ThreadReplyPayload,
)
from upstream.client import UpstreamClient
from relay.base import ConversationDriver
from relay.polling import POLL_INTERVAL_SECONDS, POLL_TIMEOUT_SECONDS, RunPoller

logger = get_logger(__name__)

# Upper bound on the combined user message, in characters
MAX_MESSAGE_CHARS = 6000
MESSAGE_SEPARATOR = "\n\n"
MESSAGE_PAGE_SIZE = 10

ASSISTANTS_HEADERS = {"OpenAI-Beta": "assistants=v2"}


def combine_messages(messages: list[ChatMessage], limit: int = MAX_MESSAGE_CHARS) -> str:
    """
    Flatten a conversation into a single user turn.

    The Assistants thread takes one message per call, so every content is
    joined with a blank line and the result is cut to ``limit`` characters.
    Roles are not carried over.
    """
    return MESSAGE_SEPARATOR.join(message.content for message in messages)[:limit]


class AssistantsDriver(ConversationDriver):
    """Drives the create-thread / post-message / run / poll / read protocol."""

    name = "assistants"

    def __init__(
        self,
        client: UpstreamClient,
        assistant_id: str,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_timeout: float = POLL_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        super().__init__(client)
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self._clock = clock
        self._sleep = sleep

    async def create_thread(self) -> Thread:
        """Create an empty thread."""
        data = await self.client.post(
            "create_thread", "/threads", json={}, headers=ASSISTANTS_HEADERS
        )
        return Thread.model_validate(data)

    async def post_message(self, thread_id: str, text: str) -> None:
        """Add a user message to the thread."""
        await self.client.post(
            "post_message",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": text},
            headers=ASSISTANTS_HEADERS,
        )

    async def create_run(self, thread_id: str) -> Run:
        """Start the assistant on the thread."""
        data = await self.client.post(
            "create_run",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": self.assistant_id},
            headers=ASSISTANTS_HEADERS,
        )
        return Run.model_validate(data)

    async def get_run(self, thread_id: str, run_id: str) -> Run:
        """Fetch the current state of a run."""
        data = await self.client.get(
            "poll_run", f"/threads/{thread_id}/runs/{run_id}", headers=ASSISTANTS_HEADERS
        )
        return Run.model_validate(data)

    async def list_messages(self, thread_id: str) -> ThreadMessageList:
        """List the most recent messages on the thread, newest first."""
        data = await self.client.get(
            "list_messages",
            f"/threads/{thread_id}/messages",
            params={"limit": MESSAGE_PAGE_SIZE},
            headers=ASSISTANTS_HEADERS,
        )
        return ThreadMessageList.model_validate(data)

    async def run(self, messages: list[ChatMessage]) -> ThreadReplyPayload:
        """Relay the conversation through a fresh thread."""
        thread = await self.create_thread()
        log = logger.bind(thread_id=thread.id)

        text = combine_messages(messages)
        await self.post_message(thread.id, text)
        log.debug("Message posted", chars=len(text), message_count=len(messages))

        run = await self.create_run(thread.id)
        log.debug("Run created", run_id=run.id, status=run.status)

        poller = RunPoller(
            fetch_run=lambda run_id: self.get_run(thread.id, run_id),
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            clock=self._clock,
            sleep=self._sleep,
        )
        outcome = await poller.wait(run)
        log.info(
            "Run finished polling",
            run_id=outcome.run.id,
            status=outcome.run.status,
            polls=outcome.polls,
            timed_out=outcome.timed_out,
        )

        listing = await self.list_messages(thread.id)
        reply = next((m for m in listing.data if m.role == "assistant"), None)
        if reply is None:
            log.info("No assistant message on thread")

        return ThreadReplyPayload(
            content=reply.content if reply is not None else [],
            run_status=outcome.run.status,
            timed_out=outcome.timed_out,
        )
