"""Chat relay core.

Selects between the stateful Assistants protocol and the single-shot
Responses protocol, drives it, and normalizes the reply.
"""

from relay.assistants import AssistantsDriver
from relay.gateway import ChatRelay
from relay.normalizer import normalize_reply
from relay.responses import ResponsesDriver

__all__ = [
    "AssistantsDriver",
    "ChatRelay",
    "ResponsesDriver",
    "normalize_reply",
]
