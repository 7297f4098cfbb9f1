"""Base class and registry for the extensions an assistant is composed of."""

import logging
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from backend.src.database import User
from backend.src.services.chat.interfaces import ChatMiddleware

logger = logging.getLogger(__name__)


@dataclass
class ExtensionSpec:
    """Static description of an extension kind.

    Attributes:
        name: Unique name of the kind, stored in the extensions table
        title: Display title
        type: One of "llm", "tool" or "other"
        description: Display description
        arguments: Names of the configuration values and whether they are required
    """

    name: str
    title: str
    type: str
    description: str = ""
    arguments: Dict[str, bool] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "type": self.type,
            "description": self.description,
            "arguments": self.arguments,
        }


class BaseExtension(ABC):
    """An extension instance configured for one assistant.

    Subclasses contribute chat middlewares and, for retrieval sources, resolve
    the chunks and documents their sources point at.
    """

    spec: ExtensionSpec

    def __init__(self, external_id: str, values: Optional[Dict[str, Any]] = None) -> None:
        self.external_id = external_id
        self.values = dict(values or {})

        missing = [
            name for name, required in self.spec.arguments.items()
            if required and self.values.get(name) in (None, "")
        ]
        if missing:
            raise ValueError(
                f"Extension '{self.spec.name}' is missing required values: {', '.join(missing)}"
            )

    def test(self) -> bool:
        """Check whether the configured service is reachable."""
        return True

    def get_middlewares(self, user: User) -> List[ChatMiddleware]:
        """Middlewares added to the chat chain of the assistant."""
        return []

    def get_chunks(self, document_uri: str, chunk_uris: List[str]) -> List[str]:
        """Resolve the text of chunks referenced by sources of this extension."""
        return []


EXTENSIONS: Dict[str, Type[BaseExtension]] = {}


def register_extension(name: str) -> Callable[[Type[BaseExtension]], Type[BaseExtension]]:
    """Register an extension class under the name of its kind."""

    def decorator(cls: Type[BaseExtension]) -> Type[BaseExtension]:
        if name in EXTENSIONS:
            logger.warning(f"Extension '{name}' registered twice, replacing")
        EXTENSIONS[name] = cls
        return cls

    return decorator
