"""Middleware generating the AI answer with the model of the assistant."""

import logging
from typing import List, Optional

from backend.conf.config import Config
from backend.src.api.middleware.exceptions import ServiceError
from backend.src.data_classes import AIMessage, ChatMessage, HumanMessage, SystemMessage
from backend.src.services.chat.interfaces import ChatContext, ChatMiddleware, ChatNextDelegate
from backend.src.services.localization import I18nService

logger = logging.getLogger(__name__)


class ExecuteMiddleware(ChatMiddleware):
    """Last stage of the chain: ask the model and store its answer."""

    ORDER = 1000

    def __init__(self, i18n: Optional[I18nService] = None) -> None:
        self.i18n = i18n or I18nService()
        self.order = ExecuteMiddleware.ORDER

    def invoke(self, context: ChatContext, next: ChatNextDelegate) -> None:
        if context.llm is None:
            raise ServiceError(message=self.i18n.t("texts.chat.errorNoModel"))

        messages = self._build_messages(context)
        logger.info(f"Generating answer for conversation {context.conversation_id}")

        content = context.llm.generate(messages)

        context.result.next({"type": "chunk", "content": content})
        if context.history is not None:
            context.history.add_message(AIMessage(content=content))

        next(context)

    @staticmethod
    def _build_messages(context: ChatContext) -> List[ChatMessage]:
        system_prompt = "\n\n".join([Config.DEFAULT_SYSTEM_PROMPT, *context.system_messages])

        messages: List[ChatMessage] = [SystemMessage(content=system_prompt)]
        if context.history is not None:
            messages.extend(context.history.get_messages())
        messages.append(HumanMessage(content=context.input))
        return messages
