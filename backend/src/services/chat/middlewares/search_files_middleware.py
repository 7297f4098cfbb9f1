"""Middleware searching the files a user uploaded before the model answers."""

import logging
from typing import List

from backend.conf.config import Config
from backend.src.data_classes import Source
from backend.src.services.chat.interfaces import ChatContext, ChatMiddleware, ChatNextDelegate
from backend.src.services.chat.middlewares.retrieval_sources_middleware import (
    RetrievalSourcesMiddleware,
)
from backend.src.services.files.file_service import FileService

logger = logging.getLogger(__name__)

FILES_EXTENSION_ID = "files"


class SearchFilesMiddleware(ChatMiddleware):
    """Search the user and conversation buckets holding files of the user.

    Turns without such files pass through without any events. Otherwise the
    hits of all buckets are handled like the results of a retrieval source.
    """

    def __init__(
        self,
        file_service: FileService,
        tool_name: str = "files",
        max_sources: int = Config.CHAT_MAX_SOURCES,
        order: int = 0,
    ) -> None:
        self.file_service = file_service
        self.tool_name = tool_name
        self.max_sources = max_sources
        self.order = order

    def invoke(self, context: ChatContext, next: ChatNextDelegate) -> None:
        buckets = self.file_service.get_searchable_buckets(context.user, context.conversation_id)
        if not buckets:
            next(context)
            return

        def search(query: str, take: int) -> List[Source]:
            sources: List[Source] = []
            for bucket in buckets:
                sources.extend(
                    self.file_service.search_files(
                        context.user,
                        bucket.id,
                        query,
                        conversation_id=context.conversation_id,
                        take=take,
                    )
                )
            return sources

        logger.debug(f"Searching {len(buckets)} file buckets of user {context.user.id}")
        RetrievalSourcesMiddleware(
            FILES_EXTENSION_ID, self.tool_name, search, max_sources=self.max_sources
        ).invoke(context, next)
