"""Chat front end: the release conversation and its channels."""

from .conversation import ChatChannel, ConversationState, ReleaseConversation
from .terminal import TerminalChannel, listen

__all__ = [
    "ChatChannel",
    "ConversationState",
    "ReleaseConversation",
    "TerminalChannel",
    "listen",
]
