"""Unit tests for the ChatPipeline."""

import unittest
from typing import List
from unittest.mock import Mock

from backend.src.services.chat import ChatContext, ChatMiddleware, ChatPipeline, ResultChannel


class RecordingMiddleware(ChatMiddleware):
    """Records its name and optionally stops the chain."""

    def __init__(self, name: str, order: int, calls: List[str], stop: bool = False) -> None:
        self.name = name
        self.order = order
        self.calls = calls
        self.stop = stop

    def invoke(self, context, next) -> None:
        self.calls.append(f"{self.name}:before")
        if not self.stop:
            next(context)
        self.calls.append(f"{self.name}:after")


class TestChatPipeline(unittest.TestCase):
    """Test cases for the ChatPipeline class."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.calls: List[str] = []
        self.context = ChatContext(
            conversation_id=1,
            configuration=Mock(),
            user=Mock(),
            input="Hello",
            result=ResultChannel(),
        )

    def test_runs_by_order_and_keeps_insertion_order_for_ties(self) -> None:
        pipeline = ChatPipeline(
            [
                RecordingMiddleware("execute", 1000, self.calls),
                RecordingMiddleware("first", 0, self.calls),
                RecordingMiddleware("second", 0, self.calls),
                RecordingMiddleware("history", -100, self.calls),
            ]
        )

        pipeline.run(self.context)

        self.assertEqual(
            self.calls,
            [
                "history:before",
                "first:before",
                "second:before",
                "execute:before",
                "execute:after",
                "second:after",
                "first:after",
                "history:after",
            ],
        )

    def test_middleware_can_stop_the_chain(self) -> None:
        pipeline = ChatPipeline(
            [
                RecordingMiddleware("first", 0, self.calls, stop=True),
                RecordingMiddleware("second", 1, self.calls),
            ]
        )

        pipeline.run(self.context)

        self.assertEqual(self.calls, ["first:before", "first:after"])

    def test_empty_pipeline(self) -> None:
        ChatPipeline([]).run(self.context)
        self.assertEqual(self.calls, [])

    def test_exceptions_propagate(self) -> None:
        failing = Mock(spec=ChatMiddleware)
        failing.order = 0
        failing.invoke.side_effect = RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            ChatPipeline([failing]).run(self.context)


if __name__ == "__main__":
    unittest.main()
