"""Chat messages as exchanged with the model and stored in the history."""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, List

from backend.src.database.models import Message, MessageType


@dataclass
class ChatMessage:
    """Base class for a message in a chat history.

    Attributes:
        content: Text content of the message
    """

    content: str

    type: ClassVar[str] = ""
    role: ClassVar[str] = ""

    def to_stored(self) -> Dict[str, Any]:
        """Convert to the serialized form kept in the messages table."""
        return {"type": self.type, "data": {"content": self.content}}

    def to_openai(self) -> Dict[str, str]:
        """Convert to an OpenAI-compatible chat completion message."""
        return {"role": self.role, "content": self.content}


@dataclass
class HumanMessage(ChatMessage):
    type: ClassVar[str] = MessageType.HUMAN.value
    role: ClassVar[str] = "user"


@dataclass
class AIMessage(ChatMessage):
    type: ClassVar[str] = MessageType.AI.value
    role: ClassVar[str] = "assistant"


@dataclass
class SystemMessage(ChatMessage):
    type: ClassVar[str] = "system"
    role: ClassVar[str] = "system"


def is_ai_message(message: ChatMessage) -> bool:
    return isinstance(message, AIMessage)


def message_from_stored(message_type: str, data: Dict[str, Any]) -> ChatMessage:
    """Create a chat message from its stored type and data."""
    content = str((data or {}).get("content", ""))
    if message_type == MessageType.AI.value:
        return AIMessage(content=content)
    if message_type == MessageType.HUMAN.value:
        return HumanMessage(content=content)
    return SystemMessage(content=content)


def messages_from_entities(entities: Iterable[Message]) -> List[ChatMessage]:
    return [message_from_stored(entity.type, entity.data) for entity in entities]
