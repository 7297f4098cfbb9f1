"""Client for the external retrieval service storing and embedding files."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from backend.conf.config import Config
from backend.src.data_classes import Source
from backend.src.services.http import create_retry_session

logger = logging.getLogger(__name__)


class ResponseError(Exception):
    """The retrieval service answered with an error status.

    Attributes:
        status: HTTP status code of the response
        body: Response text, for logging
    """

    def __init__(self, status: int, message: str, body: Optional[str] = None):
        self.status = status
        self.body = body
        super().__init__(message)


@dataclass
class FileType:
    """A file type the retrieval service is able to process."""

    file_name_extension: str
    mime_type: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {"fileNameExtension": self.file_name_extension, "mimeType": self.mime_type}


class FilesApi:
    """REST client for the retrieval service of a bucket.

    Endpoints:
        GET    /files/types     supported file types
        POST   /files           store and embed a file in a bucket
        POST   /files/process   extract the text of a file
        POST   /files/search    chunks of embedded files matching a query
        DELETE /files/{id}      remove a file from the store
    """

    def __init__(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """
        Initialize the files API client.

        Args:
            endpoint: Base URL of the retrieval service (e.g., "http://localhost:8002")
            headers: Additional headers sent with every request (e.g., api keys)
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries for idempotent requests
            retry_delay: Backoff factor between retries in seconds
        """
        self.endpoint = endpoint.rstrip("/")
        self.headers = dict(headers or {})
        self.timeout = timeout or Config.FILES_API_TIMEOUT

        # POST requests are never retried
        self.session = create_retry_session(
            max_retries if max_retries is not None else Config.FILES_API_MAX_RETRIES,
            retry_delay if retry_delay is not None else Config.FILES_API_RETRY_DELAY,
            headers=self.headers,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.endpoint}{path}"
        logger.debug(f"{method} {url}")

        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if response.status_code >= 400:
            logger.error(
                f"Retrieval service returned {response.status_code} for {method} {url}: "
                f"{response.text[:500]}"
            )
            raise ResponseError(
                response.status_code,
                f"Retrieval service error ({response.status_code})",
                body=response.text,
            )
        return response

    def get_file_types(self) -> List[FileType]:
        """Get the file types supported by the retrieval service."""
        data = self._request("GET", "/files/types").json()
        return [
            FileType(
                file_name_extension=item["fileNameExtension"],
                mime_type=item.get("mimeType"),
            )
            for item in data.get("items", [])
        ]

    def upload_file(
        self,
        file_name: str,
        mime_type: str,
        bucket: str,
        file_id: str,
        index_name: Optional[str],
        body: bytes,
    ) -> None:
        """Store a file in the vector store under the given bucket path.

        Args:
            file_name: Original file name
            mime_type: MIME type of the file
            bucket: Bucket path, see get_bucket_path
            file_id: Id of the file record, used to delete it later
            index_name: Index of the vector store, if the bucket defines one
            body: File content
        """
        params = {"fileName": file_name, "fileMimeType": mime_type, "bucket": bucket, "id": file_id}
        if index_name:
            params["index"] = index_name

        self._request(
            "POST",
            "/files",
            params=params,
            files={"file": (file_name, body, mime_type)},
        )

    def process_file(
        self, file_name: str, mime_type: str, chunk_size: int, body: bytes
    ) -> Any:
        """Extract the text of a file without storing it.

        Returns:
            The processed content as returned by the service (JSON)
        """
        return self._request(
            "POST",
            "/files/process",
            params={"fileName": file_name, "fileMimeType": mime_type, "chunkSize": chunk_size},
            files={"file": (file_name, body, mime_type)},
        ).json()

    def delete_file(self, file_id: str) -> None:
        """Remove a file from the vector store."""
        self._request("DELETE", f"/files/{file_id}")

    def search(
        self, query: str, bucket: str, index_name: Optional[str], take: int
    ) -> List[Source]:
        """Search the embedded files stored under a bucket path.

        Args:
            query: Search text
            bucket: Bucket path, see get_bucket_path
            index_name: Index of the vector store, if the bucket defines one
            take: Maximum number of results

        Returns:
            Matching chunks as sources, best first
        """
        payload: Dict[str, Any] = {"query": query, "bucket": bucket, "take": take}
        if index_name:
            payload["index"] = index_name

        data = self._request("POST", "/files/search", json=payload).json()
        return [Source.from_json(item) for item in data.get("items", [])]

    def close(self) -> None:
        """Release the connection pool of the client."""
        self.session.close()
