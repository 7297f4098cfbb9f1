"""Unit tests for the ResultChannel."""

import unittest
from unittest.mock import Mock

from backend.src.services.chat import ResultChannel


class TestResultChannel(unittest.TestCase):
    """Test cases for the ResultChannel class."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.channel = ResultChannel()

    def test_events_reach_all_subscribers_in_order(self) -> None:
        first, second = [], []
        self.channel.subscribe(first.append)
        self.channel.subscribe(second.append)

        self.channel.next({"type": "chunk", "content": "a"})
        self.channel.next({"type": "chunk", "content": "b"})

        self.assertEqual([e["content"] for e in first], ["a", "b"])
        self.assertEqual(first, second)

    def test_unsubscribe(self) -> None:
        events = []
        unsubscribe = self.channel.subscribe(events.append)

        self.channel.next({"type": "debug", "content": "1"})
        unsubscribe()
        unsubscribe()
        self.channel.next({"type": "debug", "content": "2"})

        self.assertEqual(len(events), 1)

    def test_failing_subscriber_does_not_affect_others(self) -> None:
        events = []
        self.channel.subscribe(Mock(side_effect=RuntimeError("boom")))
        self.channel.subscribe(events.append)

        self.channel.next({"type": "chunk", "content": "a"})

        self.assertEqual(len(events), 1)

    def test_complete_is_notified_once_and_drops_later_events(self) -> None:
        events = []
        on_complete = Mock()
        self.channel.subscribe(events.append, on_complete)

        self.channel.complete()
        self.channel.complete()
        self.channel.next({"type": "chunk", "content": "late"})

        on_complete.assert_called_once_with()
        self.assertTrue(self.channel.completed)
        self.assertEqual(events, [])


if __name__ == "__main__":
    unittest.main()
