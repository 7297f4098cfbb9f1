"""Middleware searching a retrieval source before the model answers."""

import logging
from typing import Callable, List

from backend.conf.config import Config
from backend.src.data_classes import Source
from backend.src.services.chat.interfaces import ChatContext, ChatMiddleware, ChatNextDelegate

logger = logging.getLogger(__name__)

SearchFunction = Callable[[str, int], List[Source]]


def format_sources_context(sources: List[Source]) -> str:
    """Format sources as numbered context for the system prompt."""
    parts = []
    for index, source in enumerate(sources, 1):
        title = source.title or source.document.name or "Untitled"
        parts.append(f"[{index}] {title}\n{source.chunk.content}")
    return "\n\n".join(parts)


class RetrievalSourcesMiddleware(ChatMiddleware):
    """Search the input in a retrieval source and hand the results to the model.

    Found sources are registered in the history so they are stored with the AI
    message, and their text is added to the system messages.
    """

    def __init__(
        self,
        extension_external_id: str,
        tool_name: str,
        search: SearchFunction,
        max_sources: int = Config.CHAT_MAX_SOURCES,
        order: int = 0,
    ) -> None:
        self.extension_external_id = extension_external_id
        self.tool_name = tool_name
        self.search = search
        self.max_sources = max_sources
        self.order = order

    def invoke(self, context: ChatContext, next: ChatNextDelegate) -> None:
        context.result.next(
            {"type": "tool_start", "tool": {"name": self.tool_name}, "content": context.input}
        )

        sources = self.search(context.input, self.max_sources)[: self.max_sources]
        logger.info(f"{self.tool_name} found {len(sources)} sources")

        if sources:
            if context.history is not None:
                context.history.add_sources(self.extension_external_id, sources)
            context.system_messages.append(format_sources_context(sources))

        context.result.next(
            {"type": "debug", "content": f"{self.tool_name}: {len(sources)} sources found"}
        )
        context.result.next({"type": "tool_end", "tool": {"name": self.tool_name}})

        next(context)
