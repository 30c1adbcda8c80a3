"""Lambda handlers for the chat responder."""

from .message_handler import message_created_handler

__all__ = ["message_created_handler"]
