"""Shared fixtures for relay tests.

Provides a scripted fake of the provider API (served through
httpx.MockTransport) and a fake clock for the run poller, so no test
touches the network or waits in real time.
"""

import json
from typing import Any, Optional

import httpx
import pytest

from shared.config import OpenAISettings, ServerSettings, Settings
from shared.models import RelayConfig

API = "/v1"


class FakeProvider:
    """
    Scripted stand-in for the provider API.

    Responses are queued per (method, path). The last queued response for
    a route is repeated once the queue is down to one entry. Every request
    is recorded for assertions.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        self.error: Optional[Exception] = None

    def add(self, method: str, path: str, *responses: tuple[int, Any]) -> "FakeProvider":
        """Queue ``(status, body)`` answers; dict bodies are sent as JSON."""
        self._routes.setdefault((method, API + path), []).extend(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error

        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": {"message": "no such route"}})

        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def calls(self) -> list[tuple[str, str]]:
        """Method and path of every request, in order."""
        return [(r.method, r.url.path[len(API):]) for r in self.requests]

    def body(self, index: int) -> Any:
        """Decoded JSON body of the request at ``index``."""
        return json.loads(self.requests[index].content)


class FakeClock:
    """Clock whose time only moves when the poller sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def assistant_message(*texts: str) -> dict[str, Any]:
    """Thread message with one text part per value."""
    return {
        "id": "msg_reply",
        "object": "thread.message",
        "role": "assistant",
        "content": [
            {"type": "text", "text": {"value": text, "annotations": []}}
            for text in texts
        ],
    }


def script_assistants(provider: FakeProvider, statuses: list[str], reply: Optional[dict] = None) -> None:
    """Queue a full Assistants exchange on thread_1 / run_1."""
    first, *rest = statuses
    provider.add("POST", "/threads", (200, {"id": "thread_1", "object": "thread"}))
    provider.add("POST", "/threads/thread_1/messages", (200, {"id": "msg_user", "role": "user"}))
    provider.add("POST", "/threads/thread_1/runs", (200, {"id": "run_1", "thread_id": "thread_1", "status": first}))
    if rest:
        provider.add(
            "GET",
            "/threads/thread_1/runs/run_1",
            *[(200, {"id": "run_1", "thread_id": "thread_1", "status": s}) for s in rest],
        )
    data = [reply] if reply is not None else []
    data.append({"id": "msg_user", "role": "user", "content": [{"type": "text", "text": {"value": "hi"}}]})
    provider.add("GET", "/threads/thread_1/messages", (200, {"object": "list", "data": data}))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def responses_config() -> RelayConfig:
    return RelayConfig(api_key="sk-test", model="gpt-4o-mini")


@pytest.fixture
def assistants_config() -> RelayConfig:
    return RelayConfig(api_key="sk-test", assistant_id="asst_123")


def make_settings(api_key: Optional[str] = "sk-test", assistant_id: str = "", **server: Any) -> Settings:
    """Settings independent of the process environment."""
    return Settings(
        openai=OpenAISettings(api_key=api_key, assistant_id=assistant_id, model="gpt-4o-mini"),
        server=ServerSettings(**server),
    )
