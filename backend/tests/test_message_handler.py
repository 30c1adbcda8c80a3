"""Tests for the message created Lambda handler."""

import threading
from unittest.mock import Mock, patch

import pytest

from models.chat import MessageCreatedEvent
from services.message_processor import ProcessResult

MODULE = "handlers.message_handler"


def _stream_record(
    event_name="INSERT",
    chat_id="chat-1",
    message_id="m1",
    role="user",
    sequence_number="100",
):
    """Build a DynamoDB stream record for the messages table."""
    record = {
        "eventID": "1",
        "eventName": event_name,
        "eventSource": "aws:dynamodb",
        "dynamodb": {
            "SequenceNumber": sequence_number,
            "Keys": {
                "chat_id": {"S": chat_id},
                "message_id": {"S": message_id},
            },
            "StreamViewType": "NEW_IMAGE",
        },
    }
    if event_name != "REMOVE":
        record["dynamodb"]["NewImage"] = {
            "chat_id": {"S": chat_id},
            "message_id": {"S": message_id},
            "role": {"S": role},
            "content": {"S": "hi"},
        }
    return record


class TestParseStreamRecord:
    """Tests for parse_stream_record."""

    def test_insert_becomes_created_event(self):
        from handlers.message_handler import parse_stream_record

        event = parse_stream_record(_stream_record())

        assert event == MessageCreatedEvent(
            chat_id="chat-1",
            message_id="m1",
            fields={
                "chat_id": "chat-1",
                "message_id": "m1",
                "role": "user",
                "content": "hi",
            },
        )

    @pytest.mark.parametrize("event_name", ["MODIFY", "REMOVE"])
    def test_other_events_are_ignored(self, event_name):
        from handlers.message_handler import parse_stream_record

        assert parse_stream_record(_stream_record(event_name=event_name)) is None


class TestMessageCreatedHandler:
    """Tests for message_created_handler."""

    @patch(f"{MODULE}.get_message_processor")
    def test_processes_each_insert(self, mock_get_processor):
        from handlers.message_handler import message_created_handler

        processor = Mock()
        processor.process.side_effect = lambda message_event: (
            ProcessResult.REPLIED
            if message_event.message_id == "m1"
            else ProcessResult.IGNORED_ROLE
        )
        mock_get_processor.return_value = processor
        event = {
            "Records": [
                _stream_record(message_id="m1", sequence_number="1"),
                _stream_record(event_name="MODIFY", message_id="m1", sequence_number="2"),
                _stream_record(message_id="m2", role="assistant", sequence_number="3"),
            ]
        }

        result = message_created_handler(event, None)

        assert result["statusCode"] == 200
        assert result["batchItemFailures"] == []
        assert result["body"]["summary"] == {
            "replied": 1,
            "ignored_role": 1,
            "skipped_event": 1,
        }
        processed_ids = sorted(
            c.args[0].message_id for c in processor.process.call_args_list
        )
        assert processed_ids == ["m1", "m2"]

    @patch(f"{MODULE}.get_message_processor")
    def test_empty_event(self, mock_get_processor):
        from handlers.message_handler import message_created_handler

        result = message_created_handler({}, None)

        assert result["statusCode"] == 200
        assert result["batchItemFailures"] == []
        assert result["body"]["summary"] == {}
        mock_get_processor.return_value.process.assert_not_called()

    @patch(f"{MODULE}.get_message_processor")
    def test_failed_record_is_reported_and_others_still_run(self, mock_get_processor):
        from handlers.message_handler import message_created_handler

        def process(message_event):
            if message_event.message_id == "m1":
                raise RuntimeError("openai down")
            return ProcessResult.REPLIED

        processor = Mock()
        processor.process.side_effect = process
        mock_get_processor.return_value = processor
        event = {
            "Records": [
                _stream_record(message_id="m0", sequence_number="100"),
                _stream_record(message_id="m1", sequence_number="200"),
                _stream_record(message_id="m2", sequence_number="300"),
            ]
        }

        result = message_created_handler(event, None)

        assert result["batchItemFailures"] == [{"itemIdentifier": "200"}]
        assert result["body"]["summary"] == {"replied": 2, "failed": 1}
        processed_ids = sorted(
            c.args[0].message_id for c in processor.process.call_args_list
        )
        assert processed_ids == ["m0", "m1", "m2"]

    @patch(f"{MODULE}.get_message_processor")
    def test_malformed_record_is_reported(self, mock_get_processor):
        from handlers.message_handler import message_created_handler

        record = _stream_record(sequence_number="42")
        del record["dynamodb"]["Keys"]

        result = message_created_handler({"Records": [record]}, None)

        assert result["batchItemFailures"] == [{"itemIdentifier": "42"}]
        mock_get_processor.return_value.process.assert_not_called()

    @patch(f"{MODULE}.RECORD_CONCURRENCY", 4)
    @patch(f"{MODULE}.get_message_processor")
    def test_records_are_processed_concurrently(self, mock_get_processor):
        """Every record must be in flight at once for the barrier to open."""
        from handlers.message_handler import message_created_handler

        barrier = threading.Barrier(3, timeout=5)

        def process(message_event):
            barrier.wait()
            return ProcessResult.REPLIED

        mock_get_processor.return_value.process.side_effect = process
        event = {
            "Records": [
                _stream_record(message_id=f"m{i}", sequence_number=str(i))
                for i in range(3)
            ]
        }

        result = message_created_handler(event, None)

        assert result["batchItemFailures"] == []
        assert result["body"]["summary"] == {"replied": 3}


class TestGetMessageProcessor:
    """Tests for lazy processor construction."""

    @patch(f"{MODULE}.CompletionService")
    @patch(f"{MODULE}.boto3")
    def test_builds_once_from_configuration(self, mock_boto3, mock_completion):
        import handlers.message_handler as handler

        with patch.object(handler, "_message_processor", None):
            first = handler.get_message_processor()
            second = handler.get_message_processor()

            assert first is second
            mock_boto3.resource.assert_called_once_with("dynamodb")
            table_names = [
                c.args[0] for c in mock_boto3.resource.return_value.Table.call_args_list
            ]
            assert table_names == [
                handler.CHATS_TABLE,
                handler.MODELS_TABLE,
                handler.MESSAGES_TABLE,
            ]
            assert first.completion_service is mock_completion.from_env.return_value
            assert first.history_limit == handler.HISTORY_LIMIT
            assert first.exclusive_responses == handler.EXCLUSIVE_RESPONSES

    def test_default_table_names(self):
        import handlers.message_handler as handler

        assert handler.CHATS_TABLE.startswith("chat-responder-chats-")
        assert handler.MESSAGES_TABLE.startswith("chat-responder-messages-")
