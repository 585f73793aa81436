"""Core data models for the chat relay.

Covers the inbound conversation, the per-request relay configuration and
the upstream resources (threads, runs, messages, responses) the drivers
exchange with the provider.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

# Substituted whenever no reply text can be extracted
REPLY_PLACEHOLDER = "…"


class ChatMessage(BaseModel):
    """A single message of the inbound conversation."""
    role: str = Field(default="user", description="Message role: user, assistant, system")
    content: str = Field(default="")

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value: Any) -> Any:
        return value or "user"

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (bool, int, float)):
            return str(value)
        return value


class ChatRequest(BaseModel):
    """Inbound request body."""
    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Successful response body."""
    reply: str


class RelayConfig(BaseModel):
    """
    Configuration for a single relay invocation.

    Built once from the process settings and passed down explicitly;
    no component below the orchestrator reads the environment.
    """
    api_key: str = Field(..., min_length=1, repr=False)
    assistant_id: str = Field(default="", description="Selects the Assistants path when set")
    model: str = Field(default=DEFAULT_MODEL, description="Model for the Responses path")
    base_url: str = Field(default=DEFAULT_BASE_URL)
    timeout_seconds: float = Field(default=30.0, gt=0)

    model_config = ConfigDict(frozen=True)

    @property
    def uses_assistants(self) -> bool:
        """Return True when the stateful Assistants path is selected."""
        return bool(self.assistant_id)


class RunStatus(str, Enum):
    """Lifecycle states of an upstream run."""
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


# Statuses the poller keeps waiting on; everything else ends the loop
PENDING_RUN_STATUSES = frozenset({RunStatus.QUEUED.value, RunStatus.IN_PROGRESS.value})


class Thread(BaseModel):
    """Upstream conversation thread, created fresh for every request."""
    id: str


class Run(BaseModel):
    """Upstream execution of an assistant against a thread."""
    id: str
    thread_id: Optional[str] = None
    status: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_RUN_STATUSES


class ThreadMessage(BaseModel):
    """A message as listed on an upstream thread."""
    id: Optional[str] = None
    role: Optional[str] = None
    content: Any = None


class ThreadMessageList(BaseModel):
    """Page of thread messages, most recent first."""
    data: list[ThreadMessage] = Field(default_factory=list)


# Content parts. Known variants are tagged by ``type``; anything that does
# not validate as a known variant becomes an UnknownContentPart.

class TextValue(BaseModel):
    value: str = ""


class TextContentPart(BaseModel):
    """Textual part of a thread message."""
    type: Literal["text"]
    text: Optional[TextValue] = None


class OutputTextPart(BaseModel):
    """Textual part of a response output item."""
    type: Literal["output_text", "text"]
    text: Optional[str] = None


class UnknownContentPart(BaseModel):
    """Fallback for parts that carry no extractable text."""
    type: Optional[str] = None

    model_config = ConfigDict(extra="allow")


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


class ResponseOutputItem(BaseModel):
    """One item of a response's ``output`` list."""
    type: Optional[str] = None
    content: list[Any] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def _content_list(cls, value: Any) -> list[Any]:
        return _as_list(value)


class ThreadReplyPayload(BaseModel):
    """
    Reply material produced by the Assistants driver.

    ``content`` holds the raw content parts of the most recent assistant
    message (empty when the thread has none). The poll outcome is kept
    alongside for logging and for callers that want to tell a timed-out
    run apart from a completed one.
    """
    kind: Literal["thread_reply"] = "thread_reply"
    content: list[Any] = Field(default_factory=list)
    run_status: Optional[str] = None
    timed_out: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def _content_list(cls, value: Any) -> list[Any]:
        return _as_list(value)


class ResponsePayload(BaseModel):
    """Body returned by the single-shot Responses endpoint."""
    kind: Literal["response"] = "response"
    output_text: Optional[str] = None
    output: list[ResponseOutputItem] = Field(default_factory=list)

    @field_validator("output_text", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("output", mode="before")
    @classmethod
    def _output_list(cls, value: Any) -> list[Any]:
        return [item for item in _as_list(value) if isinstance(item, dict)]
