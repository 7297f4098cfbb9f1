"""Data classes describing document sources attributed to AI answers."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


@dataclass
class SourceChunk:
    """The part of a document a source points at.

    Attributes:
        content: Text representation of the chunk, empty when not captured inline
        mime_type: MIME type of the chunk (e.g., text/plain)
        uri: URI of the chunk (e.g., s5q-chunk://{chunkId}) or an id
        pages: Page references, if applicable
    """

    content: str = ""
    mime_type: str = "text/plain"
    uri: Optional[str] = None
    pages: Optional[List[int]] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "content": self.content,
            "mimeType": self.mime_type,
            "pages": self.pages,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SourceChunk":
        return cls(
            content=data.get("content") or "",
            mime_type=data.get("mimeType") or "text/plain",
            uri=data.get("uri"),
            pages=data.get("pages"),
        )


@dataclass
class SourceDocument:
    """The document a source belongs to.

    Attributes:
        mime_type: MIME type of the document (e.g., application/pdf)
        uri: URI of the document (e.g., s5q-document://{documentId}) or an id
        name: Name of the document
        size: Size of the document in bytes
        link: Link to the document, if available
    """

    mime_type: str = "text/plain"
    uri: Optional[str] = None
    name: Optional[str] = None
    size: Optional[int] = None
    link: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "mimeType": self.mime_type,
            "size": self.size,
            "link": self.link,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SourceDocument":
        return cls(
            mime_type=data.get("mimeType") or "text/plain",
            uri=data.get("uri"),
            name=data.get("name"),
            size=data.get("size"),
            link=data.get("link"),
        )


@dataclass
class Source:
    """A document reference collected while generating an answer.

    Attributes:
        title: Title of the source document
        chunk: Chunk information
        document: Document information
        metadata: Additional metadata about the source
        extension_external_id: External id of the extension that produced the
            source, empty until the source is attached to a chat history
    """

    title: str
    chunk: SourceChunk
    document: SourceDocument
    metadata: Optional[Dict[str, Any]] = field(default=None)
    extension_external_id: str = ""

    def with_extension(self, extension_external_id: str) -> "Source":
        """Return a copy tagged with the extension that produced it."""
        return replace(self, extension_external_id=extension_external_id)

    def redacted(self) -> "Source":
        """Return a copy without chunk content, for streaming to the client."""
        return replace(self, chunk=replace(self.chunk, content=""))

    def to_json(self) -> Dict[str, Any]:
        """Convert the source to a JSON-compatible dictionary.

        Returns:
            Dictionary with camelCase keys, as stored in the messages table
        """
        return {
            "title": self.title,
            "chunk": self.chunk.to_json(),
            "document": self.document.to_json(),
            "metadata": self.metadata,
            "extensionExternalId": self.extension_external_id,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Source":
        """Create a Source from its stored dictionary form.

        Args:
            data: Dictionary as produced by to_json or returned by an extension
        """
        return cls(
            title=data.get("title") or "",
            chunk=SourceChunk.from_json(data.get("chunk") or {}),
            document=SourceDocument.from_json(data.get("document") or {}),
            metadata=data.get("metadata"),
            extension_external_id=data.get("extensionExternalId") or "",
        )
