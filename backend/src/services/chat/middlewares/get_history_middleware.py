"""Middleware loading and persisting the threaded message history of a chat turn.

The human message of the turn is stored right away, appended to the latest
message of the conversation or, when editing, to the parent of the edited
message. The AI message is stored once generated, together with the tools
invoked, the debug trace and the sources collected during the turn.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.src.data_classes import (
    ChatMessage,
    HumanMessage,
    Source,
    UploadedFile,
    is_ai_message,
    messages_from_entities,
)
from backend.src.database import (
    ConversationFile,
    Message,
    SessionFactory,
    get_latest_message,
    get_message_thread,
)
from backend.src.services.chat.interfaces import (
    ChatContext,
    ChatMiddleware,
    ChatNextDelegate,
    MessagesHistory,
)
from backend.src.services.chat.result_channel import ChatEvent

logger = logging.getLogger(__name__)


class GetHistoryMiddleware(ChatMiddleware):
    """Attach a persistent history to the context and store the human message."""

    ORDER = -100

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory
        self.order = GetHistoryMiddleware.ORDER

    def invoke(self, context: ChatContext, next: ChatNextDelegate) -> None:
        history = InternalChatHistory(
            conversation_id=context.conversation_id,
            configuration_id=context.configuration.id,
            context=context,
            session_factory=self.session_factory,
        )

        history.add_message(
            HumanMessage(content=context.input),
            persist_human=True,
            edit_message_id=context.edit_message_id,
        )

        context.history = history
        next(context)


class InternalChatHistory(MessagesHistory):
    """Database backed history of one chat turn.

    Attributes:
        tools: Names of the tools started during the turn
        debug: Debug messages published during the turn
        sources: Sources collected for the AI message
        stored: Thread preceding the human message of the turn
        current_parent_id: Parent of the next message to store
    """

    def __init__(
        self,
        conversation_id: int,
        configuration_id: int,
        context: ChatContext,
        session_factory: SessionFactory,
    ) -> None:
        self.conversation_id = conversation_id
        self.configuration_id = configuration_id
        self.context = context
        self.session_factory = session_factory

        self.tools: List[str] = []
        self.debug: List[str] = []
        self.sources: List[Source] = []
        self.stored: Optional[List[ChatMessage]] = None
        self.current_parent_id: Optional[int] = None

        context.result.subscribe(self._on_event)

    def _on_event(self, event: ChatEvent) -> None:
        if event.get("type") == "tool_start":
            self.tools.append(event["tool"]["name"])
        elif event.get("type") == "debug":
            self.debug.append(event["content"])

    def add_sources(self, extension_external_id: str, sources: List[Source]) -> None:
        self.sources.extend(source.with_extension(extension_external_id) for source in sources)

    def get_messages(self) -> List[ChatMessage]:
        if self.conversation_id <= 0:
            return []

        return list(self.stored or [])

    def _publish_sources_references(self) -> None:
        if self.sources:
            self.context.result.next(
                {
                    "type": "sources",
                    "content": [source.redacted().to_json() for source in self.sources],
                }
            )

    def add_message(
        self,
        message: ChatMessage,
        persist_human: bool = False,
        edit_message_id: Optional[int] = None,
    ) -> None:
        """Store a message of the turn.

        AI messages are always stored. Human messages only when persist_human
        is set, which also determines the parent and loads the stored thread.
        Failures are logged and do not interrupt the chat.

        Args:
            message: Message to store
            persist_human: Whether to store a human message
            edit_message_id: Message being replaced by the human message
        """
        stored = message.to_stored()

        try:
            if is_ai_message(message):
                self._publish_sources_references()

                with self.session_factory() as session:
                    entity = Message(
                        type=stored["type"],
                        data=stored["data"],
                        conversation_id=self.conversation_id,
                        configuration_id=self.configuration_id,
                        parent_id=self.current_parent_id,
                        # Only used by the UI to display the tools of old conversations
                        tools=list(self.tools),
                        debug=list(self.debug),
                        sources=[source.to_json() for source in self.sources],
                    )
                    session.add(entity)
                    session.commit()

                self.current_parent_id = entity.id
                # The UI needs the id to rate the message
                self.context.result.next(
                    {"type": "saved", "messageId": entity.id, "messageType": "ai"}
                )
            elif persist_human:
                with self.session_factory() as session:
                    self.current_parent_id = self._find_parent_id(session, edit_message_id)
                    self.stored = messages_from_entities(
                        get_message_thread(session, self.conversation_id, self.current_parent_id)
                    )

                    entity = Message(
                        type=stored["type"],
                        data=stored["data"],
                        conversation_id=self.conversation_id,
                        configuration_id=self.configuration_id,
                        parent_id=self.current_parent_id,
                        tools=[],
                        debug=[],
                        sources=[],
                    )
                    session.add(entity)
                    session.flush()

                    self._attach_new_files_to_conversation(
                        session, entity.conversation_id, entity.id, self.context.files
                    )
                    session.commit()

                self.current_parent_id = entity.id
                self.context.result.next(
                    {"type": "saved", "messageId": entity.id, "messageType": "human"}
                )
        except Exception as e:
            logger.error(f"Failed to store message in history: {str(e)}")

    def _find_parent_id(self, session: Session, edit_message_id: Optional[int]) -> Optional[int]:
        if edit_message_id:
            edited = session.get(Message, edit_message_id)
            if edited is None or edited.conversation_id != self.conversation_id:
                return None
            return edited.parent_id

        latest = get_latest_message(session, self.conversation_id)
        return latest.id if latest else None

    @staticmethod
    def _attach_new_files_to_conversation(
        session: Session,
        conversation_id: int,
        message_id: int,
        files: Iterable[UploadedFile],
    ) -> None:
        file_ids = list(dict.fromkeys(file.id for file in files))
        if not file_ids:
            return

        existing = session.scalars(
            select(ConversationFile).where(
                ConversationFile.conversation_id == conversation_id,
                ConversationFile.file_id.in_(file_ids),
            )
        ).all()

        for link in existing:
            if link.message_id is None:
                link.message_id = message_id

        existing_ids = {link.file_id for link in existing}
        for file_id in file_ids:
            if file_id not in existing_ids:
                session.add(
                    ConversationFile(
                        conversation_id=conversation_id,
                        message_id=message_id,
                        file_id=file_id,
                    )
                )
