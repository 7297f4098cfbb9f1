"""Unit tests for the retrieval, file search and execute middlewares."""

import unittest
from unittest.mock import Mock

from backend.conf.config import Config
from backend.src.api.middleware.exceptions import ServiceError
from backend.src.data_classes import (
    AIMessage,
    HumanMessage,
    Source,
    SourceChunk,
    SourceDocument,
    SystemMessage,
)
from backend.src.services.chat import ChatContext, ChatModel, MessagesHistory, ResultChannel
from backend.src.services.chat.middlewares import (
    FILES_EXTENSION_ID,
    ExecuteMiddleware,
    RetrievalSourcesMiddleware,
    SearchFilesMiddleware,
    format_sources_context,
)
from backend.src.services.files import FileService


def make_source(index: int) -> Source:
    return Source(
        title=f"Document {index}",
        chunk=SourceChunk(content=f"Content {index}", uri=f"chunk://{index}"),
        document=SourceDocument(uri=f"doc://{index}"),
    )


class ChatMiddlewareTestCase(unittest.TestCase):
    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.events = []
        self.history = Mock(spec=MessagesHistory)
        self.history.get_messages.return_value = []
        self.context = ChatContext(
            conversation_id=1,
            configuration=Mock(),
            user=Mock(),
            input="What is the leave policy?",
            result=ResultChannel(),
            history=self.history,
        )
        self.context.result.subscribe(self.events.append)
        self.next_delegate = Mock()


class TestRetrievalSourcesMiddleware(ChatMiddlewareTestCase):
    """Test cases for the RetrievalSourcesMiddleware class."""

    def test_sources_are_added_to_history_and_system_messages(self) -> None:
        sources = [make_source(1), make_source(2)]
        search = Mock(return_value=sources)
        middleware = RetrievalSourcesMiddleware("sources-1", "search", search, max_sources=3)

        middleware.invoke(self.context, self.next_delegate)

        search.assert_called_once_with("What is the leave policy?", 3)
        self.history.add_sources.assert_called_once_with("sources-1", sources)
        self.assertEqual(
            self.context.system_messages,
            ["[1] Document 1\nContent 1\n\n[2] Document 2\nContent 2"],
        )
        self.assertEqual(
            [e["type"] for e in self.events], ["tool_start", "debug", "tool_end"]
        )
        self.assertEqual(self.events[0]["tool"], {"name": "search"})
        self.assertEqual(self.events[1]["content"], "search: 2 sources found")
        self.next_delegate.assert_called_once_with(self.context)

    def test_results_are_capped(self) -> None:
        search = Mock(return_value=[make_source(i) for i in range(5)])
        middleware = RetrievalSourcesMiddleware("sources-1", "search", search, max_sources=2)

        middleware.invoke(self.context, self.next_delegate)

        self.assertEqual(len(self.history.add_sources.call_args[0][1]), 2)

    def test_no_sources(self) -> None:
        middleware = RetrievalSourcesMiddleware("sources-1", "search", Mock(return_value=[]))

        middleware.invoke(self.context, self.next_delegate)

        self.history.add_sources.assert_not_called()
        self.assertEqual(self.context.system_messages, [])
        self.next_delegate.assert_called_once_with(self.context)

    def test_search_failure_propagates(self) -> None:
        search = Mock(side_effect=ConnectionError("unreachable"))
        middleware = RetrievalSourcesMiddleware("sources-1", "search", search)

        with self.assertRaises(ConnectionError):
            middleware.invoke(self.context, self.next_delegate)

        self.next_delegate.assert_not_called()

    def test_format_uses_document_name_without_title(self) -> None:
        source = Source(
            title="",
            chunk=SourceChunk(content="Text"),
            document=SourceDocument(name="file.pdf"),
        )
        self.assertEqual(format_sources_context([source]), "[1] file.pdf\nText")


class TestSearchFilesMiddleware(ChatMiddlewareTestCase):
    """Test cases for the SearchFilesMiddleware class."""

    def setUp(self) -> None:
        super().setUp()
        self.file_service = Mock(spec=FileService)
        self.middleware = SearchFilesMiddleware(self.file_service, max_sources=3)

    def test_without_buckets_passes_through_silently(self) -> None:
        self.file_service.get_searchable_buckets.return_value = []

        self.middleware.invoke(self.context, self.next_delegate)

        self.file_service.get_searchable_buckets.assert_called_once_with(self.context.user, 1)
        self.file_service.search_files.assert_not_called()
        self.assertEqual(self.events, [])
        self.history.add_sources.assert_not_called()
        self.next_delegate.assert_called_once_with(self.context)

    def test_hits_of_all_buckets_become_sources(self) -> None:
        self.file_service.get_searchable_buckets.return_value = [Mock(id=4), Mock(id=9)]
        self.file_service.search_files.side_effect = [
            [make_source(1), make_source(2)],
            [make_source(3), make_source(4)],
        ]

        self.middleware.invoke(self.context, self.next_delegate)

        self.assertEqual(
            [c[0][1] for c in self.file_service.search_files.call_args_list], [4, 9]
        )
        self.assertEqual(
            self.file_service.search_files.call_args[1], {"conversation_id": 1, "take": 3}
        )
        extension_id, sources = self.history.add_sources.call_args[0]
        self.assertEqual(extension_id, FILES_EXTENSION_ID)
        self.assertEqual([s.title for s in sources], ["Document 1", "Document 2", "Document 3"])
        self.assertEqual(
            [e["type"] for e in self.events], ["tool_start", "debug", "tool_end"]
        )
        self.assertEqual(self.events[0]["tool"], {"name": "files"})
        self.assertIn("[3] Document 3", self.context.system_messages[0])
        self.next_delegate.assert_called_once_with(self.context)


class TestExecuteMiddleware(ChatMiddlewareTestCase):
    """Test cases for the ExecuteMiddleware class."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        super().setUp()
        self.llm = Mock(spec=ChatModel)
        self.llm.generate.return_value = "You have 25 days."
        self.context.llm = self.llm
        self.middleware = ExecuteMiddleware()

    def test_runs_last(self) -> None:
        self.assertGreater(self.middleware.order, 0)

    def test_generates_and_stores_answer(self) -> None:
        self.history.get_messages.return_value = [
            HumanMessage(content="Hi"),
            AIMessage(content="Hello!"),
        ]
        self.context.system_messages.append("[1] Policy\n25 days")

        self.middleware.invoke(self.context, self.next_delegate)

        messages = self.llm.generate.call_args[0][0]
        self.assertEqual(
            messages,
            [
                SystemMessage(content=f"{Config.DEFAULT_SYSTEM_PROMPT}\n\n[1] Policy\n25 days"),
                HumanMessage(content="Hi"),
                AIMessage(content="Hello!"),
                HumanMessage(content="What is the leave policy?"),
            ],
        )
        self.assertEqual(self.events, [{"type": "chunk", "content": "You have 25 days."}])
        self.history.add_message.assert_called_once_with(AIMessage(content="You have 25 days."))
        self.next_delegate.assert_called_once_with(self.context)

    def test_without_model(self) -> None:
        self.context.llm = None

        with self.assertRaises(ServiceError):
            self.middleware.invoke(self.context, self.next_delegate)

        self.history.add_message.assert_not_called()

    def test_model_failure_stores_nothing(self) -> None:
        self.llm.generate.side_effect = RuntimeError("model down")

        with self.assertRaises(RuntimeError):
            self.middleware.invoke(self.context, self.next_delegate)

        self.history.add_message.assert_not_called()
        self.assertEqual(self.events, [])


if __name__ == "__main__":
    unittest.main()
