"""Service running a chat turn through the middleware chain."""

import logging
import traceback
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.src.api.middleware.exceptions import APIError, NotFoundError
from backend.src.data_classes import UploadedFile, build_file
from backend.src.database import Conversation, File, SessionFactory, User
from backend.src.services.chat.interfaces import ChatContext, ChatMiddleware
from backend.src.services.chat.middlewares import (
    ExecuteMiddleware,
    GetHistoryMiddleware,
    SearchFilesMiddleware,
)
from backend.src.services.chat.pipeline import ChatPipeline
from backend.src.services.chat.result_channel import EventCallback, ResultChannel
from backend.src.services.extensions.extension_service import ExtensionService
from backend.src.services.files.file_service import FileService
from backend.src.services.localization import I18nService

logger = logging.getLogger(__name__)


class ChatService:
    """Build the context of a chat turn and run the middlewares of its assistant.

    The static middlewares (history, execution and, given a file service, the
    search in uploaded files) are combined with the middlewares contributed by
    the enabled extensions of the assistant and run ordered by their ``order``.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        extension_service: ExtensionService,
        i18n: Optional[I18nService] = None,
        middlewares: Optional[Sequence[ChatMiddleware]] = None,
        file_service: Optional[FileService] = None,
    ) -> None:
        self.session_factory = session_factory
        self.extension_service = extension_service
        self.i18n = i18n or I18nService()
        self.middlewares: List[ChatMiddleware]
        if middlewares is not None:
            self.middlewares = list(middlewares)
        else:
            self.middlewares = [GetHistoryMiddleware(session_factory), ExecuteMiddleware(self.i18n)]
            if file_service is not None:
                self.middlewares.append(SearchFilesMiddleware(file_service))

    def create_context(
        self,
        user: User,
        conversation_id: int,
        input: str,
        file_ids: Optional[Sequence[int]] = None,
        edit_message_id: Optional[int] = None,
        configuration_id: Optional[int] = None,
    ) -> ChatContext:
        """Validate a chat request and build the context of the turn.

        Raises:
            NotFoundError: If the conversation, assistant or a file is not
                available to the user
        """
        with self.session_factory() as session:
            conversation = session.get(Conversation, conversation_id)
            if conversation is None or conversation.user_id != user.id:
                raise NotFoundError(message=f"Conversation {conversation_id} not found")

            current_configuration_id = conversation.configuration_id
            files = self._load_files(session, user, file_ids or [])

        configuration = self.extension_service.get_configuration(
            user, configuration_id or current_configuration_id
        )
        if not configuration.enabled:
            raise NotFoundError(message=f"Configuration {configuration.id} not found")

        # Switching the assistant applies to the rest of the conversation
        if configuration.id != current_configuration_id:
            with self.session_factory() as session:
                conversation = session.get(Conversation, conversation_id)
                conversation.configuration_id = configuration.id
                session.commit()

        return ChatContext(
            conversation_id=conversation_id,
            configuration=configuration,
            user=user,
            input=input,
            result=ResultChannel(),
            files=files,
            edit_message_id=edit_message_id,
        )

    @staticmethod
    def _load_files(session: Session, user: User, file_ids: Sequence[int]) -> List[UploadedFile]:
        if not file_ids:
            return []

        entities = session.scalars(select(File).where(File.id.in_(file_ids))).all()
        found = {entity.id: entity for entity in entities if entity.user_id in (None, user.id)}

        missing = [file_id for file_id in file_ids if file_id not in found]
        if missing:
            raise NotFoundError(message=f"Files {missing} not found")
        return [build_file(found[file_id]) for file_id in file_ids]

    def get_middlewares(self, context: ChatContext) -> List[ChatMiddleware]:
        middlewares = list(self.middlewares)
        for extension in self.extension_service.get_configuration_extensions(
            context.configuration.id
        ):
            middlewares.extend(extension.get_middlewares(context.user))
        return middlewares

    def run(self, context: ChatContext) -> None:
        """Run the chain, publishing an error event on failure.

        The result channel of the context is always completed afterwards.
        """
        try:
            ChatPipeline(self.get_middlewares(context)).run(context)
        except APIError as e:
            logger.error(f"Chat in conversation {context.conversation_id} failed: {e.message}")
            context.result.next({"type": "error", "message": e.message})
        except Exception as e:
            logger.error(f"Chat in conversation {context.conversation_id} failed: {str(e)}")
            logger.error(traceback.format_exc())
            context.result.next(
                {"type": "error", "message": self.i18n.t("texts.chat.errorGenerating")}
            )
        finally:
            context.result.next({"type": "completed"})
            context.result.complete()

    def send_message(
        self,
        user: User,
        conversation_id: int,
        input: str,
        file_ids: Optional[Sequence[int]] = None,
        edit_message_id: Optional[int] = None,
        configuration_id: Optional[int] = None,
        on_event: Optional[EventCallback] = None,
    ) -> ChatContext:
        """Run a complete chat turn synchronously and return its context.

        Args:
            on_event: Subscriber receiving the events of the turn
        """
        context = self.create_context(
            user,
            conversation_id,
            input,
            file_ids=file_ids,
            edit_message_id=edit_message_id,
            configuration_id=configuration_id,
        )
        if on_event is not None:
            context.result.subscribe(on_event)
        self.run(context)
        return context
