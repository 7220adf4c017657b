"""
Module: test_batch_completed_strategy.py
Description: Unit tests for the batch completion strategy.
"""

from unittest.mock import AsyncMock

import pytest

from fanout.errors import DownstreamError
from fanout.models.record import QueueRecord
from fanout.strategies.batch_protocol import LogBatchCompletedStrategy


class TestLogBatchCompletedStrategy:

    @pytest.mark.asyncio
    async def test_marks_batch_completed(self, sqs_record, notification_data):
        table = AsyncMock()
        record = QueueRecord.from_sqs(sqs_record("m-1", "BATCH_COMPLETED", {
            "batchId": "batch-1",
            "notification": notification_data,
        }))

        result = await LogBatchCompletedStrategy(table).execute(record)

        assert result.succeeded
        batch_id, notification = table.mark_completed.await_args.args
        assert batch_id == "batch-1"
        assert notification.alert_key == "DE-DWD-PVW-0001:fcm"

    @pytest.mark.asyncio
    async def test_table_failure(self, sqs_record, notification_data):
        table = AsyncMock()
        table.mark_completed.side_effect = DownstreamError("throttled")
        record = QueueRecord.from_sqs(sqs_record("m-1", "BATCH_COMPLETED", {
            "batchId": "batch-1",
            "notification": notification_data,
        }))

        result = await LogBatchCompletedStrategy(table).execute(record)

        assert not result.succeeded
