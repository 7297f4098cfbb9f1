"""Extension searching an external sources API for retrieval augmented answers."""

import logging
from typing import Any, Dict, List, Optional

import requests

from backend.conf.config import Config
from backend.src.data_classes import Source
from backend.src.database import User
from backend.src.services.chat.interfaces import ChatMiddleware
from backend.src.services.chat.middlewares import RetrievalSourcesMiddleware
from backend.src.services.extensions.extension import (
    BaseExtension,
    ExtensionSpec,
    register_extension,
)
from backend.src.services.http import create_retry_session

logger = logging.getLogger(__name__)


@register_extension("sources-api")
class SourcesApiExtension(BaseExtension):
    """Retrieval source backed by a REST service.

    Endpoints:
        POST /search      sources matching a query
        POST /chunks      text of chunks of a document
    """

    spec = ExtensionSpec(
        name="sources-api",
        title="Sources API",
        type="other",
        description="Searches documents in an external sources service.",
        arguments={"endpoint": True, "apiKey": False, "maxResults": False, "toolName": False},
    )

    def __init__(self, external_id: str, values: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(external_id, values)
        self.endpoint = str(self.values["endpoint"]).rstrip("/")
        self.max_results = int(self.values.get("maxResults") or Config.CHAT_MAX_SOURCES)
        self.tool_name = self.values.get("toolName") or "sources"

        headers = {}
        if self.values.get("apiKey"):
            headers["Authorization"] = f"Bearer {self.values['apiKey']}"
        self.session = create_retry_session(
            Config.FILES_API_MAX_RETRIES, Config.FILES_API_RETRY_DELAY, headers=headers
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.endpoint}{path}"
        response = self.session.request(method, url, timeout=Config.FILES_API_TIMEOUT, **kwargs)
        response.raise_for_status()
        return response.json()

    def test(self) -> bool:
        try:
            self.search("test", 1)
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Sources API at {self.endpoint} is not reachable: {str(e)}")
            return False

    def search(self, query: str, take: int) -> List[Source]:
        data = self._request("POST", "/search", json={"query": query, "take": take})
        return [Source.from_json(item) for item in data.get("sources", [])]

    def get_chunks(self, document_uri: str, chunk_uris: List[str]) -> List[str]:
        data = self._request(
            "POST", "/chunks", json={"documentUri": document_uri, "chunkUris": chunk_uris}
        )
        return [str(item.get("content", "")) for item in data.get("items", [])]

    def get_middlewares(self, user: User) -> List[ChatMiddleware]:
        return [
            RetrievalSourcesMiddleware(
                extension_external_id=self.external_id,
                tool_name=self.tool_name,
                search=self.search,
                max_sources=self.max_results,
            )
        ]
