"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from models.chat import ChatMessage, Conversation, MessageCreatedEvent, ModelConfig


def make_completion(content):
    """Build an object shaped like an OpenAI ChatCompletion response."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


@pytest.fixture
def sample_conversation():
    """Create a conversation that references a model config."""
    return Conversation(chat_id="chat-1", model_id="helpful", ai_responding=False)


@pytest.fixture
def sample_model_config():
    """Create a model config with a simple prompt."""
    return ModelConfig(model_id="helpful", prompt="You are helpful.")


@pytest.fixture
def sample_user_message():
    """Create a user message stored in chat-1."""
    return ChatMessage(
        chat_id="chat-1",
        message_id="01HZX0000000000000000000A1",
        role="user",
        content="hi",
        created_at="2026-01-20T08:00:00+00:00",
    )


@pytest.fixture
def sample_event(sample_user_message):
    """Create the creation event for the sample user message."""
    return MessageCreatedEvent(
        chat_id=sample_user_message.chat_id,
        message_id=sample_user_message.message_id,
        fields={"role": "user", "content": "hi"},
    )


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table for testing."""
    mock_table = Mock()
    mock_table.put_item.return_value = {}
    mock_table.update_item.return_value = {}
    mock_table.get_item.return_value = {}
    mock_table.query.return_value = {"Items": []}
    return mock_table


@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client answering "Hello!"."""
    client = Mock()
    client.chat.completions.create.return_value = make_completion("Hello!")
    return client
