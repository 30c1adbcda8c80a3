"""Replies to user messages as a human-paced assistant.

For every newly created message the processor pretends to read it, flags the
conversation as ``ai_responding``, asks the completion API for a reply using
the conversation's model prompt and full history, pretends to type the reply,
clears the flag and stores the reply as an assistant message.

Only messages whose role is exactly ``"user"`` are answered. Assistant
replies are themselves new messages, so this guard is what stops the
processor from answering its own output forever.

There is no compensation: if a step after the flag is set fails, the flag
stays set and the exception propagates to the caller.
"""

import logging
from collections.abc import Callable
from enum import Enum

from models.chat import (
    Conversation,
    MessageCreatedEvent,
    MessageRole,
    ResponseState,
)
from services.chat_store import SERVER_TIMESTAMP, ChatStore
from services.completion_service import CompletionService
from utils.pacing import reading_delay_ms, typing_delay_ms, wait

logger = logging.getLogger(__name__)


class ProcessResult(str, Enum):
    """Outcome of processing one message event."""

    REPLIED = "replied"
    MESSAGE_MISSING = "message_missing"
    IGNORED_ROLE = "ignored_role"
    CONVERSATION_BUSY = "conversation_busy"


class MessageProcessor:
    """Answers new user messages in a conversation."""

    def __init__(
        self,
        store: ChatStore,
        completion_service: CompletionService,
        sleep: Callable[[float], None] = wait,
        history_limit: int | None = None,
        exclusive_responses: bool = False,
    ):
        """Initialize the processor.

        Args:
            store: Access to conversations, models and messages
            completion_service: Generates the assistant reply
            sleep: Called with a delay in milliseconds for reading and typing
            history_limit: Send only the most recent messages; None sends all
            exclusive_responses: Claim the conversation with a conditional
                write and skip the message if a reply is already in flight
        """
        self.store = store
        self.completion_service = completion_service
        self.sleep = sleep
        self.history_limit = history_limit
        self.exclusive_responses = exclusive_responses

    def process(self, event: MessageCreatedEvent) -> ProcessResult:
        """Run the reply sequence for one created message."""
        chat_id = event.chat_id
        logger.info("Processing message %s in chat %s", event.message_id, chat_id)

        message = self.store.get_message(chat_id, event.message_id)
        if message is None:
            logger.info("Message %s no longer exists, skipping", event.message_id)
            return ProcessResult.MESSAGE_MISSING

        conversation = self.store.get_conversation(chat_id)
        prompt = self._load_prompt(chat_id, conversation)

        if not message.is_user_message:
            logger.info(
                "Ignoring message %s with role %r", event.message_id, message.role
            )
            return ProcessResult.IGNORED_ROLE

        reading_ms = reading_delay_ms(message.content)
        logger.info("Reading time in milliseconds: %s", reading_ms)
        self.sleep(reading_ms)

        if self.exclusive_responses:
            if not self.store.try_begin_response(chat_id):
                logger.info(
                    "Chat %s is %s, skipping message %s",
                    chat_id,
                    ResponseState.GENERATING.value,
                    event.message_id,
                )
                return ProcessResult.CONVERSATION_BUSY
        else:
            if (
                conversation is not None
                and conversation.response_state == ResponseState.GENERATING
            ):
                logger.warning(
                    "Chat %s is already %s, replies may overlap",
                    chat_id,
                    conversation.response_state.value,
                )
            self.store.set_ai_responding(chat_id, True)
        logger.info("AI Responding in chat %s", chat_id)

        history = [
            m.to_completion_entry()
            for m in self.store.list_messages(chat_id, limit=self.history_limit)
        ]
        logger.info("History of %d messages loaded for chat %s", len(history), chat_id)

        reply = self.completion_service.complete(prompt, history)
        logger.info("Completion received for chat %s", chat_id)

        typing_ms = typing_delay_ms(reply)
        logger.info("Typing time in milliseconds: %s", typing_ms)
        self.sleep(typing_ms)

        self.store.set_ai_responding(chat_id, False)
        logger.info("AI Stopped Responding in chat %s", chat_id)

        stored = self.store.add_message(
            chat_id,
            role=MessageRole.ASSISTANT.value,
            content=reply,
            created_at=SERVER_TIMESTAMP,
        )
        logger.info("Message %s added to chat %s", stored.message_id, chat_id)
        return ProcessResult.REPLIED

    def _load_prompt(self, chat_id: str, conversation: Conversation | None) -> str:
        """Resolve the conversation's model config and return its prompt."""
        if conversation is None or not conversation.model_id:
            logger.warning("Chat %s has no model configured", chat_id)
            return ""

        model = self.store.get_model(conversation.model_id)
        if model is None:
            logger.warning(
                "Model %s for chat %s not found", conversation.model_id, chat_id
            )
            return ""
        return model.prompt
