"""Unit tests for the ConversationService."""

import unittest

from sqlalchemy import select

from backend.src.api.middleware.exceptions import BadRequestError, NotFoundError
from backend.src.database import Message
from backend.src.services.conversations import ConversationService
from backend.src.services.conversations.conversation_service import message_to_json
from backend.src.services.extensions import ExtensionService
from backend.tests.database_fixtures import (
    add_configuration,
    add_conversation,
    add_message,
    add_user,
    create_test_session_factory,
)


class TestConversationService(unittest.TestCase):
    """Test cases for the ConversationService class."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.session_factory = create_test_session_factory()
        self.user = add_user(self.session_factory)
        self.other_user = add_user(self.session_factory, "user2")
        self.configuration = add_configuration(self.session_factory)
        self.service = ConversationService(
            self.session_factory, ExtensionService(self.session_factory, registry={})
        )

    def test_create_and_list_conversations(self) -> None:
        first = self.service.create_conversation(self.user, self.configuration.id, "First")
        second = self.service.create_conversation(self.user, self.configuration.id, "Second")
        self.service.create_conversation(self.other_user, self.configuration.id, "Foreign")

        conversations = self.service.get_conversations(self.user)

        self.assertEqual([c.id for c in conversations], [second.id, first.id])
        self.assertEqual(self.service.get_conversation(self.user, first.id).name, "First")

    def test_create_with_unavailable_configuration(self) -> None:
        restricted = add_configuration(
            self.session_factory, name="Admins", user_group_ids=["admins"]
        )

        with self.assertRaises(NotFoundError):
            self.service.create_conversation(self.user, restricted.id)
        with self.assertRaises(NotFoundError):
            self.service.create_conversation(self.user, 999)

    def test_conversations_of_other_users_are_hidden(self) -> None:
        conversation = add_conversation(self.session_factory, self.other_user, self.configuration)

        with self.assertRaises(NotFoundError):
            self.service.get_conversation(self.user, conversation.id)
        with self.assertRaises(NotFoundError):
            self.service.update_conversation(self.user, conversation.id, "Mine")
        with self.assertRaises(NotFoundError):
            self.service.delete_conversation(self.user, conversation.id)
        with self.assertRaises(NotFoundError):
            self.service.get_messages(self.user, conversation.id)

    def test_rename_and_delete(self) -> None:
        conversation = add_conversation(self.session_factory, self.user, self.configuration)
        add_message(self.session_factory, conversation, "Hi")

        self.assertEqual(
            self.service.update_conversation(self.user, conversation.id, "Renamed").name,
            "Renamed",
        )

        self.service.delete_conversation(self.user, conversation.id)
        self.assertEqual(self.service.get_conversations(self.user), [])
        with self.session_factory() as session:
            self.assertEqual(session.scalars(select(Message)).all(), [])

    def test_get_messages_follows_latest_thread(self) -> None:
        conversation = add_conversation(self.session_factory, self.user, self.configuration)
        first = add_message(self.session_factory, conversation, "Hi")
        answer = add_message(
            self.session_factory, conversation, "Hello", "ai", parent_id=first.id
        )
        add_message(self.session_factory, conversation, "Old branch", parent_id=answer.id)
        edited = add_message(self.session_factory, conversation, "New branch", parent_id=answer.id)

        messages = self.service.get_messages(self.user, conversation.id)

        self.assertEqual([m.id for m in messages], [first.id, answer.id, edited.id])
        self.assertEqual(message_to_json(messages[1])["content"], "Hello")

    def test_get_messages_of_empty_conversation(self) -> None:
        conversation = add_conversation(self.session_factory, self.user, self.configuration)
        self.assertEqual(self.service.get_messages(self.user, conversation.id), [])

    def test_rate_message(self) -> None:
        conversation = add_conversation(self.session_factory, self.user, self.configuration)
        message = add_message(self.session_factory, conversation, "Answer", "ai")

        rated = self.service.rate_message(self.user, conversation.id, message.id, "good")
        self.assertEqual(rated.rating, "good")
        self.assertEqual(message_to_json(rated)["rating"], "good")

        reset = self.service.rate_message(self.user, conversation.id, message.id, "unrated")
        self.assertIsNone(reset.rating)
        self.assertEqual(message_to_json(reset)["rating"], "unrated")

    def test_rate_message_invalid(self) -> None:
        conversation = add_conversation(self.session_factory, self.user, self.configuration)
        message = add_message(self.session_factory, conversation, "Answer", "ai")

        with self.assertRaises(BadRequestError):
            self.service.rate_message(self.user, conversation.id, message.id, "excellent")
        with self.assertRaises(NotFoundError):
            self.service.rate_message(self.other_user, conversation.id, message.id, "bad")
        with self.assertRaises(NotFoundError):
            self.service.rate_message(self.user, conversation.id + 1, message.id, "bad")


if __name__ == "__main__":
    unittest.main()
