"""DynamoDB-backed access to conversations, model configs and messages."""

import logging
from datetime import UTC, datetime
from typing import Any

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from ulid import ULID

from models.chat import ChatMessage, Conversation, ModelConfig
from utils.dynamodb_utils import parse_from_dynamodb, parse_items_from_dynamodb

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Placeholder resolved to the current UTC time when an item is written."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class ChatStoreError(Exception):
    """Raised when a read or write against the chat tables fails."""


class ChatStore:
    """Reads and writes chat documents in DynamoDB.

    Every method is a single request against one table; none of them spans a
    transaction.
    """

    def __init__(self, chats_table, models_table, messages_table):
        """Initialize the store.

        Args:
            chats_table: DynamoDB table of conversations, keyed by chat_id
            models_table: DynamoDB table of model configs, keyed by model_id
            messages_table: DynamoDB table of messages, keyed by
                chat_id (hash) and message_id (range, ULID)
        """
        self.chats_table = chats_table
        self.models_table = models_table
        self.messages_table = messages_table

    def get_message(self, chat_id: str, message_id: str) -> ChatMessage | None:
        """Get a message, or None if it no longer exists."""
        try:
            response = self.messages_table.get_item(
                Key={"chat_id": chat_id, "message_id": message_id},
                ConsistentRead=True,
            )
        except ClientError as e:
            logger.error("Error loading message %s/%s: %s", chat_id, message_id, e)
            raise ChatStoreError(f"Failed to load message {message_id}") from e

        item = response.get("Item")
        if not item:
            return None
        return ChatMessage(**parse_from_dynamodb(item))

    def get_conversation(self, chat_id: str) -> Conversation | None:
        """Get a conversation record."""
        try:
            response = self.chats_table.get_item(Key={"chat_id": chat_id})
        except ClientError as e:
            logger.error("Error loading conversation %s: %s", chat_id, e)
            raise ChatStoreError(f"Failed to load conversation {chat_id}") from e

        item = response.get("Item")
        if not item:
            return None
        return Conversation(**parse_from_dynamodb(item))

    def get_model(self, model_id: str) -> ModelConfig | None:
        """Get a model configuration."""
        try:
            response = self.models_table.get_item(Key={"model_id": model_id})
        except ClientError as e:
            logger.error("Error loading model %s: %s", model_id, e)
            raise ChatStoreError(f"Failed to load model {model_id}") from e

        item = response.get("Item")
        if not item:
            return None
        return ModelConfig(**parse_from_dynamodb(item))

    def set_ai_responding(self, chat_id: str, value: bool) -> None:
        """Set the conversation's ai_responding flag unconditionally."""
        try:
            self.chats_table.update_item(
                Key={"chat_id": chat_id},
                UpdateExpression="SET ai_responding = :value",
                ExpressionAttributeValues={":value": value},
            )
        except ClientError as e:
            logger.error("Error updating ai_responding on %s: %s", chat_id, e)
            raise ChatStoreError(f"Failed to update conversation {chat_id}") from e

    def try_begin_response(self, chat_id: str) -> bool:
        """Mark the conversation as generating, unless it already is.

        Returns:
            True if this caller now owns the reply, False if another
            generation is already in flight
        """
        try:
            self.chats_table.update_item(
                Key={"chat_id": chat_id},
                UpdateExpression="SET ai_responding = :true",
                ConditionExpression=(
                    "attribute_not_exists(ai_responding) OR ai_responding = :false"
                ),
                ExpressionAttributeValues={":true": True, ":false": False},
            )
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            logger.error("Error claiming conversation %s: %s", chat_id, e)
            raise ChatStoreError(f"Failed to update conversation {chat_id}") from e

    def list_messages(
        self, chat_id: str, limit: int | None = None
    ) -> list[ChatMessage]:
        """List messages of a conversation, oldest first.

        Args:
            chat_id: The conversation ID
            limit: Only return the most recent ``limit`` messages

        Returns:
            Messages in chronological order
        """
        if limit is not None and limit <= 0:
            return []

        query_kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("chat_id").eq(chat_id),
            "ConsistentRead": True,
            # Newest first when bounded so the limit keeps the latest messages
            "ScanIndexForward": limit is None,
        }
        items: list[dict[str, Any]] = []
        try:
            while True:
                if limit is not None:
                    query_kwargs["Limit"] = limit - len(items)
                response = self.messages_table.query(**query_kwargs)
                items.extend(response.get("Items", []))

                last_key = response.get("LastEvaluatedKey")
                if not last_key or (limit is not None and len(items) >= limit):
                    break
                query_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("Error loading messages for %s: %s", chat_id, e)
            raise ChatStoreError(f"Failed to load messages for {chat_id}") from e

        if limit is not None:
            items.reverse()
        return [ChatMessage(**item) for item in parse_items_from_dynamodb(items)]

    def add_message(
        self,
        chat_id: str,
        role: str,
        content: str,
        created_at: Any = SERVER_TIMESTAMP,
    ) -> ChatMessage:
        """Append a message to a conversation.

        Args:
            chat_id: The conversation ID
            role: Message role
            content: Message text
            created_at: ISO timestamp, or SERVER_TIMESTAMP for the time of write

        Returns:
            The stored message
        """
        if created_at is SERVER_TIMESTAMP:
            created_at = datetime.now(UTC).isoformat()

        message = ChatMessage(
            chat_id=chat_id,
            message_id=str(ULID()),
            role=role,
            content=content,
            created_at=created_at,
        )
        try:
            self.messages_table.put_item(Item=message.model_dump())
        except ClientError as e:
            logger.error("Error saving message to %s: %s", chat_id, e)
            raise ChatStoreError(f"Failed to save message to {chat_id}") from e
        return message
