"""Data models for the chat responder."""

from .chat import (
    ChatMessage,
    Conversation,
    MessageCreatedEvent,
    MessageRole,
    ModelConfig,
    ResponseState,
)

__all__ = [
    "ChatMessage",
    "Conversation",
    "MessageCreatedEvent",
    "MessageRole",
    "ModelConfig",
    "ResponseState",
]
