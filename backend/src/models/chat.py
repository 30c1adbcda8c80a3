"""Chat data models for conversations answered by the assistant."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ResponseState(str, Enum):
    """Whether the assistant is currently generating a reply in a conversation.

    Stored on the conversation record as the ``ai_responding`` boolean so that
    clients can show a typing indicator.
    """

    IDLE = "idle"
    GENERATING = "generating"

    @classmethod
    def from_flag(cls, ai_responding: bool) -> "ResponseState":
        return cls.GENERATING if ai_responding else cls.IDLE


class ChatMessage(BaseModel):
    """A single message in a conversation."""

    chat_id: str = Field(..., description="Owning conversation identifier")
    message_id: str = Field(..., description="Unique message identifier (ULID)")
    # Kept as a plain string: roles written by clients are not trusted
    role: str = Field(..., description="Message role: user, assistant or system")
    content: str = Field("", description="Message text content")
    # Written by clients too, who may store epoch numbers instead of ISO strings
    created_at: str | int | float | None = Field(
        None, description="ISO timestamp (or epoch) when the message was stored"
    )

    @property
    def is_user_message(self) -> bool:
        return self.role == MessageRole.USER.value

    def to_completion_entry(self) -> dict[str, str]:
        """Project the message to a completion API history entry."""
        return {"role": self.role, "content": self.content}


class Conversation(BaseModel):
    """A chat session and the model configuration answering it."""

    chat_id: str = Field(..., description="Conversation identifier")
    model_id: str | None = Field(
        None, description="Reference to the ModelConfig used for replies"
    )
    ai_responding: bool = Field(
        default=False, description="True while a reply is being generated"
    )

    @property
    def response_state(self) -> ResponseState:
        return ResponseState.from_flag(self.ai_responding)


class ModelConfig(BaseModel):
    """Model configuration referenced by conversations."""

    model_id: str = Field(..., description="Model configuration identifier")
    prompt: str = Field("", description="System instruction for completions")


class MessageCreatedEvent(BaseModel):
    """A newly created message document, as delivered by the trigger."""

    chat_id: str = Field(..., description="Conversation the message belongs to")
    message_id: str = Field(..., description="Identifier of the new message")
    fields: dict[str, Any] = Field(
        default_factory=dict, description="Field values of the new document"
    )
