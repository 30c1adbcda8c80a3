"""Message created Lambda handler.

This Lambda is subscribed to the DynamoDB stream of the messages table. Each
INSERT record is a newly created message at ``chats/{chat_id}/messages/
{message_id}`` and is handed to the MessageProcessor, which answers user
messages with a paced assistant reply.

Records are processed concurrently. A record whose processing raises is
logged and returned in ``batchItemFailures`` so that the stream retries it
without failing the other messages of the batch.
"""

import logging
import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime

import boto3

from models.chat import MessageCreatedEvent
from services.chat_store import ChatStore
from services.completion_service import CompletionService
from services.message_processor import MessageProcessor
from utils.dynamodb_utils import deserialize_image

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment variables
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")
CHATS_TABLE = os.environ.get("CHATS_TABLE", f"chat-responder-chats-{ENVIRONMENT}")
MODELS_TABLE = os.environ.get("MODELS_TABLE", f"chat-responder-models-{ENVIRONMENT}")
MESSAGES_TABLE = os.environ.get(
    "MESSAGES_TABLE", f"chat-responder-messages-{ENVIRONMENT}"
)
HISTORY_LIMIT = (
    int(os.environ["HISTORY_LIMIT"]) if os.environ.get("HISTORY_LIMIT") else None
)
EXCLUSIVE_RESPONSES = os.environ.get("EXCLUSIVE_RESPONSES", "false").lower() == "true"
# Number of stream records processed concurrently per invocation
RECORD_CONCURRENCY = int(os.environ.get("RECORD_CONCURRENCY", "10"))

# Lazy-initialized processor
_message_processor = None


def get_message_processor() -> MessageProcessor:
    """Get or create the MessageProcessor (lazy init for Lambda reuse)."""
    global _message_processor
    if _message_processor is None:
        dynamodb = boto3.resource("dynamodb")
        store = ChatStore(
            chats_table=dynamodb.Table(CHATS_TABLE),
            models_table=dynamodb.Table(MODELS_TABLE),
            messages_table=dynamodb.Table(MESSAGES_TABLE),
        )
        _message_processor = MessageProcessor(
            store=store,
            completion_service=CompletionService.from_env(),
            history_limit=HISTORY_LIMIT,
            exclusive_responses=EXCLUSIVE_RESPONSES,
        )
    return _message_processor


def parse_stream_record(record: dict) -> MessageCreatedEvent | None:
    """Build a MessageCreatedEvent from a DynamoDB stream record.

    Args:
        record: One entry of the Lambda event's ``Records``

    Returns:
        The creation event, or None for MODIFY/REMOVE records
    """
    if record.get("eventName") != "INSERT":
        return None

    dynamodb_data = record.get("dynamodb", {})
    keys = deserialize_image(dynamodb_data.get("Keys"))
    fields = deserialize_image(dynamodb_data.get("NewImage"))
    return MessageCreatedEvent(
        chat_id=keys["chat_id"],
        message_id=keys["message_id"],
        fields=fields,
    )


def _process_record(processor: MessageProcessor, record: dict) -> str:
    """Process one stream record and return its outcome name."""
    message_event = parse_stream_record(record)
    if message_event is None:
        return "skipped_event"
    return processor.process(message_event).value


def message_created_handler(event, context):
    """Lambda handler for newly created chat messages.

    Records are processed concurrently so one conversation's pacing delays
    and completion call do not hold up messages in other conversations. A
    failing record does not stop the others; it is reported back through
    ``batchItemFailures`` (requires ReportBatchItemFailures on the event
    source mapping) so the stream retries from that record.

    Args:
        event: DynamoDB Streams event for the messages table
        context: Lambda context

    Returns:
        Failed record sequence numbers and a count per processing outcome
    """
    records = event.get("Records", [])
    logger.info(
        f"Message handler started at {datetime.now(UTC).isoformat()} "
        f"with {len(records)} records"
    )

    outcomes: Counter[str] = Counter()
    batch_item_failures: list[dict[str, str]] = []

    if records:
        processor = get_message_processor()
        with ThreadPoolExecutor(
            max_workers=min(RECORD_CONCURRENCY, len(records))
        ) as executor:
            futures = {
                executor.submit(_process_record, processor, record): record
                for record in records
            }

            for future in as_completed(futures):
                record = futures[future]
                try:
                    outcomes[future.result()] += 1
                except Exception as e:
                    sequence_number = record.get("dynamodb", {}).get("SequenceNumber")
                    logger.error(
                        f"Error processing record {sequence_number}: {e}",
                        exc_info=True,
                    )
                    outcomes["failed"] += 1
                    batch_item_failures.append({"itemIdentifier": sequence_number})

    logger.info(f"Message processing complete: {dict(outcomes)}")

    return {
        "batchItemFailures": batch_item_failures,
        "statusCode": 200,
        "body": {
            "message": "Message processing complete",
            "summary": dict(outcomes),
            "timestamp": datetime.now(UTC).isoformat(),
        },
    }
