"""Reply normalization.

The two upstream conventions wrap reply text in different envelopes.
Each envelope has its own extraction function; ``normalize_reply`` picks
the one matching the payload and guarantees a non-empty string.
"""

from typing import Any, Union

from pydantic import ValidationError

from shared.models import (
    REPLY_PLACEHOLDER,
    OutputTextPart,
    ResponsePayload,
    TextContentPart,
    ThreadReplyPayload,
    UnknownContentPart,
)

ThreadContentPart = Union[TextContentPart, UnknownContentPart]
OutputContentPart = Union[OutputTextPart, UnknownContentPart]


def _unknown(raw: Any) -> UnknownContentPart:
    if isinstance(raw, dict) and isinstance(raw.get("type"), str):
        return UnknownContentPart(type=raw["type"])
    return UnknownContentPart()


def parse_thread_part(raw: Any) -> ThreadContentPart:
    """Parse one content part of a thread message."""
    try:
        return TextContentPart.model_validate(raw)
    except ValidationError:
        return _unknown(raw)


def parse_output_part(raw: Any) -> OutputContentPart:
    """Parse one content part of a response output item."""
    try:
        return OutputTextPart.model_validate(raw)
    except ValidationError:
        return _unknown(raw)


def _thread_part_text(part: ThreadContentPart) -> str:
    if isinstance(part, TextContentPart) and part.text is not None:
        return part.text.value
    return ""


def _output_part_text(part: OutputContentPart) -> str:
    if isinstance(part, OutputTextPart) and part.text:
        return part.text
    return ""


def extract_thread_text(content: list[Any]) -> str:
    """
    Extract text from the content parts of an assistant thread message.

    Text values are joined with newlines and the result is trimmed.
    Non-text parts contribute an empty entry to the join.
    """
    parts = [parse_thread_part(raw) for raw in content]
    return "\n".join(_thread_part_text(part) for part in parts).strip()


def extract_response_text(payload: ResponsePayload) -> str:
    """
    Extract text from a Responses API body.

    A non-empty top-level ``output_text`` is used as is. Otherwise the
    textual parts of every output item are concatenated without separators
    and the result is trimmed.
    """
    if payload.output_text:
        return payload.output_text

    pieces = []
    for item in payload.output:
        parts = [parse_output_part(raw) for raw in item.content]
        pieces.append("".join(_output_part_text(part) for part in parts))
    return "".join(pieces).strip()


def normalize_reply(payload: Any) -> str:
    """
    Turn a driver payload into the reply string.

    Returns:
        The extracted text, or the placeholder when there is none
    """
    if isinstance(payload, ThreadReplyPayload):
        text = extract_thread_text(payload.content)
    elif isinstance(payload, ResponsePayload):
        text = extract_response_text(payload)
    else:
        text = ""

    return text or REPLY_PLACEHOLDER
