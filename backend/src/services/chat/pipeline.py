"""Runs the chat middlewares in order."""

import logging
from typing import List, Sequence

from backend.src.services.chat.interfaces import ChatContext, ChatMiddleware

logger = logging.getLogger(__name__)


class ChatPipeline:
    """Chain of middlewares sorted by their ``order``, lowest first.

    Middlewares with equal order keep the order they were given in. Each
    middleware decides whether and when to call the next one.
    """

    def __init__(self, middlewares: Sequence[ChatMiddleware]) -> None:
        self.middlewares: List[ChatMiddleware] = sorted(
            middlewares, key=lambda middleware: middleware.order
        )

    def run(self, context: ChatContext) -> None:
        logger.debug(
            "Running chat pipeline: "
            + ", ".join(type(middleware).__name__ for middleware in self.middlewares)
        )
        self._invoke(0, context)

    def _invoke(self, index: int, context: ChatContext) -> None:
        if index >= len(self.middlewares):
            return

        self.middlewares[index].invoke(
            context, lambda next_context: self._invoke(index + 1, next_context)
        )
