"""
Module: test_push_strategies.py
Description: Unit tests for push fan-out strategies.

Uses the in-memory chunk store and push sender from conftest and an
AsyncMock completion reporter.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import EndpointConnectionError

from fanout.delivery.push import PushOutcome
from fanout.errors import ConfigurationError, DownstreamError, RecordValidationError
from fanout.models.notification import Platform
from fanout.models.record import QueueRecord
from fanout.sqs_queue.sqs import SQSClient
from fanout.strategies.push import PushToAllStrategy, PushToSelectedStrategy, SqsCompletionReporter

CHUNK_KEY = "dwd/fcm/Severe/1.json"


@pytest.fixture
def reporter():
    reporter = AsyncMock()
    reporter.report_completed = AsyncMock()
    return reporter


@pytest.fixture
def all_record(sqs_record, notification_data):
    def make(bucket="test-chunks"):
        return QueueRecord.from_sqs(sqs_record("m-1", "PUSH_ALL", {
            "batchId": "batch-1",
            "notification": notification_data,
            "s3": {"bucket": bucket, "key": CHUNK_KEY},
        }))
    return make


@pytest.fixture
def selected_record(sqs_record, notification_data):
    return QueueRecord.from_sqs(sqs_record("m-2", "PUSH_SELECTED", {
        "batchId": "batch-2",
        "notification": notification_data,
        "tokens": ["t1", "t2", "t3"],
    }))


class TestPushToAllStrategy:
    """Test cases for PushToAllStrategy."""

    @pytest.mark.asyncio
    async def test_sends_chunk_in_bulk(self, chunk_store, push_sender, reporter, all_record):
        """Test the chunk is loaded and sent in one bulk call, then reported."""
        await chunk_store.put_tokens(CHUNK_KEY, ["t1", "t2"])
        strategy = PushToAllStrategy(chunk_store, {Platform.FCM: push_sender}, reporter)

        result = await strategy.execute(all_record())

        assert result.succeeded
        assert push_sender.bulk_calls == [["t1", "t2"]]
        assert push_sender.messages[0].title == "Amtliche UNWETTERWARNUNG vor ORKANBOEEN"
        reporter.report_completed.assert_awaited_once()
        batch_id, reported = reporter.report_completed.await_args.args
        assert batch_id == "batch-1"
        assert reported.alert_key == "DE-DWD-PVW-0001:fcm"

    @pytest.mark.asyncio
    async def test_rejected_tokens_do_not_fail(self, chunk_store, push_sender, reporter, all_record):
        """Test tokens rejected as invalid are not retried."""
        await chunk_store.put_tokens(CHUNK_KEY, ["t1", "stale"])
        push_sender.outcomes["stale"] = PushOutcome.REJECTED

        result = await PushToAllStrategy(chunk_store, {Platform.FCM: push_sender}, reporter).execute(all_record())

        assert result.succeeded

    @pytest.mark.asyncio
    async def test_transient_failure_fails_record(self, chunk_store, push_sender, reporter, all_record):
        """Test a transiently failed token fails the record without reporting completion."""
        await chunk_store.put_tokens(CHUNK_KEY, ["t1", "t2"])
        push_sender.outcomes["t2"] = PushOutcome.FAILED

        result = await PushToAllStrategy(chunk_store, {Platform.FCM: push_sender}, reporter).execute(all_record())

        assert not result.succeeded
        assert isinstance(result.error, DownstreamError)
        assert "1 of 2 tokens failed" in result.error.message
        reporter.report_completed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_chunk(self, chunk_store, push_sender, all_record):
        result = await PushToAllStrategy(chunk_store, {Platform.FCM: push_sender}).execute(all_record())

        assert not result.succeeded
        assert isinstance(result.error, DownstreamError)
        assert push_sender.bulk_calls == []

    @pytest.mark.asyncio
    async def test_foreign_bucket_rejected(self, chunk_store, push_sender, all_record):
        """Test chunks outside the configured bucket are not read."""
        result = await PushToAllStrategy(chunk_store, {Platform.FCM: push_sender}).execute(
            all_record(bucket="someone-elses-bucket")
        )

        assert not result.succeeded
        assert isinstance(result.error, RecordValidationError)

    @pytest.mark.asyncio
    async def test_no_sender_for_platform(self, chunk_store, push_sender, all_record):
        await chunk_store.put_tokens(CHUNK_KEY, ["t1"])

        result = await PushToAllStrategy(chunk_store, {Platform.APNS: push_sender}).execute(all_record())

        assert not result.succeeded
        assert isinstance(result.error, ConfigurationError)

    @pytest.mark.asyncio
    async def test_lost_completion_notice_does_not_fail(self, chunk_store, push_sender, reporter, all_record):
        """Test a failing completion report is logged only."""
        await chunk_store.put_tokens(CHUNK_KEY, ["t1"])
        reporter.report_completed.side_effect = DownstreamError("queue unavailable")

        result = await PushToAllStrategy(chunk_store, {Platform.FCM: push_sender}, reporter).execute(all_record())

        assert result.succeeded


class TestPushToSelectedStrategy:
    """Test cases for PushToSelectedStrategy."""

    @pytest.mark.asyncio
    async def test_sends_each_token(self, push_sender, reporter, selected_record):
        """Test every token gets its own send, in order."""
        result = await PushToSelectedStrategy({Platform.FCM: push_sender}, reporter).execute(selected_record)

        assert result.succeeded
        assert push_sender.sent == ["t1", "t2", "t3"]
        reporter.report_completed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transient_failure_fails_record(self, push_sender, selected_record):
        push_sender.outcomes["t2"] = PushOutcome.FAILED

        result = await PushToSelectedStrategy({Platform.FCM: push_sender}).execute(selected_record)

        assert not result.succeeded
        assert push_sender.sent == ["t1", "t2", "t3"]

    @pytest.mark.asyncio
    async def test_replay_sends_again(self, push_sender, selected_record):
        """Test re-running a record is safe and repeats the sends."""
        strategy = PushToSelectedStrategy({Platform.FCM: push_sender})

        assert (await strategy.execute(selected_record)).succeeded
        assert (await strategy.execute(selected_record)).succeeded
        assert push_sender.sent == ["t1", "t2", "t3"] * 2

    @pytest.mark.asyncio
    async def test_unreachable_protocol_queue_does_not_fail(self, push_sender, selected_record):
        """Test a network failure while reporting completion keeps the sent batch successful."""
        session = MagicMock()
        session.client.side_effect = EndpointConnectionError(endpoint_url="https://sqs.us-east-1.amazonaws.com")
        reporter = SqsCompletionReporter(SQSClient(session), "https://sqs.example.com/batch-protocol")

        result = await PushToSelectedStrategy({Platform.FCM: push_sender}, reporter).execute(selected_record)

        assert result.succeeded
        assert push_sender.sent == ["t1", "t2", "t3"]
        session.client.assert_called_once_with('sqs')


class TestSqsCompletionReporter:
    """Test cases for SqsCompletionReporter."""

    @pytest.mark.asyncio
    async def test_publishes_batch_completed(self, notification):
        sqs_client = AsyncMock()
        reporter = SqsCompletionReporter(sqs_client, "https://sqs.example.com/batch-protocol")

        await reporter.report_completed("batch-1", notification)

        queue_url, body = sqs_client.send_message.await_args.args
        assert queue_url == "https://sqs.example.com/batch-protocol"
        assert '"operationTag": "BATCH_COMPLETED"' in body
        assert '"batchId": "batch-1"' in body
        assert sqs_client.send_message.await_args.kwargs == {"entry_id": "batch-1"}

    def test_requires_queue_url(self):
        with pytest.raises(ValueError):
            SqsCompletionReporter(AsyncMock(), "")
