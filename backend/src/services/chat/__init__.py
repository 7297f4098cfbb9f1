"""Chat package: context, result channel and middleware chain of a chat turn.

ChatService and DocumentContentService depend on the extensions package and
are imported from their modules directly.
"""

from .interfaces import ChatContext, ChatMiddleware, ChatModel, ChatNextDelegate, MessagesHistory
from .pipeline import ChatPipeline
from .result_channel import ChatEvent, ResultChannel

__all__ = [
    "ChatContext",
    "ChatMiddleware",
    "ChatModel",
    "ChatNextDelegate",
    "MessagesHistory",
    "ChatPipeline",
    "ChatEvent",
    "ResultChannel",
]
