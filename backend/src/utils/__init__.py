"""Utility functions for the chat responder."""

from .dynamodb_utils import (
    decimal_to_python,
    deserialize_image,
    parse_from_dynamodb,
    parse_items_from_dynamodb,
)
from .pacing import reading_delay_ms, typing_delay_ms, wait

__all__ = [
    "decimal_to_python",
    "deserialize_image",
    "parse_from_dynamodb",
    "parse_items_from_dynamodb",
    "reading_delay_ms",
    "typing_delay_ms",
    "wait",
]
