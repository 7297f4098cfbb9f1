"""Types shared by the chat middleware chain."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from backend.src.data_classes import ChatMessage, Source, UploadedFile
from backend.src.database import Configuration, User
from backend.src.services.chat.result_channel import ResultChannel


class ChatModel(ABC):
    """A language model able to answer a chat."""

    @abstractmethod
    def generate(self, messages: Sequence[ChatMessage]) -> str:
        """Generate the next AI message for the given history.

        Args:
            messages: System, previous and current messages in order

        Returns:
            str: Generated response text
        """


class MessagesHistory(ABC):
    """History of the conversation a chat turn belongs to."""

    @abstractmethod
    def get_messages(self) -> List[ChatMessage]:
        """Messages of the thread preceding the current turn."""

    @abstractmethod
    def add_message(
        self,
        message: ChatMessage,
        persist_human: bool = False,
        edit_message_id: Optional[int] = None,
    ) -> None:
        """Append a message to the history."""

    @abstractmethod
    def add_sources(self, extension_external_id: str, sources: List[Source]) -> None:
        """Attribute sources found by an extension to the next AI message."""


@dataclass
class ChatContext:
    """Mutable state of a single chat turn, decorated by each middleware.

    Attributes:
        conversation_id: Conversation of the turn
        configuration: Assistant answering the turn
        user: User sending the message
        input: Text of the human message
        result: Channel streaming events of the turn to the client
        files: Files attached to the human message
        edit_message_id: Message replaced by this turn, if editing
        llm: Model generating the answer, set by a model extension
        history: Conversation history, set by the history middleware
        system_messages: Instructions and retrieved context for the model
    """

    conversation_id: int
    configuration: Configuration
    user: User
    input: str
    result: ResultChannel
    files: List[UploadedFile] = field(default_factory=list)
    edit_message_id: Optional[int] = None
    llm: Optional[ChatModel] = None
    history: Optional[MessagesHistory] = None
    system_messages: List[str] = field(default_factory=list)


ChatNextDelegate = Callable[[ChatContext], None]


class ChatMiddleware(ABC):
    """One stage of the chat chain. Lower order runs first."""

    order: int = 0

    @abstractmethod
    def invoke(self, context: ChatContext, next: ChatNextDelegate) -> None:
        """Handle the context and call next to continue the chain."""
