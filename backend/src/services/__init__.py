"""Services for the chat responder backend."""

from .chat_store import SERVER_TIMESTAMP, ChatStore, ChatStoreError
from .completion_service import CompletionService
from .message_processor import MessageProcessor, ProcessResult

__all__ = [
    "SERVER_TIMESTAMP",
    "ChatStore",
    "ChatStoreError",
    "CompletionService",
    "MessageProcessor",
    "ProcessResult",
]
