"""DynamoDB type conversion utilities.

DynamoDB returns numbers as Decimal and DynamoDB Streams deliver record images
in the typed wire format (``{"S": "..."}``). These helpers turn both into plain
Python values before they reach the Pydantic models.
"""

from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import TypeDeserializer

_deserializer = TypeDeserializer()


def decimal_to_python(obj: Any) -> Any:
    """
    Recursively convert DynamoDB Decimal values to int or float.

    Args:
        obj: Any object that may contain Decimal values

    Returns:
        The object with whole Decimals as int and the rest as float
    """
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    elif isinstance(obj, dict):
        return {key: decimal_to_python(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [decimal_to_python(item) for item in obj]
    elif isinstance(obj, set):
        return {decimal_to_python(item) for item in obj}
    return obj


def parse_from_dynamodb(item: dict[str, Any]) -> dict[str, Any]:
    """Parse a table item (get/query result) to Python-native types."""
    return decimal_to_python(item)


def parse_items_from_dynamodb(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Parse a list of table items to Python-native types."""
    return [parse_from_dynamodb(item) for item in items]


def deserialize_image(image: dict[str, Any] | None) -> dict[str, Any]:
    """
    Convert a DynamoDB Streams image to a plain dictionary.

    Args:
        image: ``NewImage``, ``OldImage`` or ``Keys`` from a stream record,
            in DynamoDB JSON (``{"role": {"S": "user"}}``)

    Returns:
        Dictionary of attribute names to Python values
    """
    if not image:
        return {}
    return decimal_to_python(
        {key: _deserializer.deserialize(value) for key, value in image.items()}
    )
