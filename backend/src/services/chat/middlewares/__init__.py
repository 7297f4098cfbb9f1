"""Chat middlewares.

Classes:
    - GetHistoryMiddleware: Loads the thread and stores the messages of a turn
    - RetrievalSourcesMiddleware: Adds sources found by a retrieval service
    - SearchFilesMiddleware: Adds sources found in the files uploaded by the user
    - ExecuteMiddleware: Generates the answer with the configured model
"""

from .execute_middleware import ExecuteMiddleware
from .get_history_middleware import GetHistoryMiddleware, InternalChatHistory
from .retrieval_sources_middleware import RetrievalSourcesMiddleware, format_sources_context
from .search_files_middleware import FILES_EXTENSION_ID, SearchFilesMiddleware

__all__ = [
    "GetHistoryMiddleware",
    "InternalChatHistory",
    "RetrievalSourcesMiddleware",
    "SearchFilesMiddleware",
    "ExecuteMiddleware",
    "FILES_EXTENSION_ID",
    "format_sources_context",
]
