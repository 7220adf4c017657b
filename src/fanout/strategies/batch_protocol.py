"""
Module: batch_protocol.py
Description: Strategy writing batch completion to the protocol table.
"""

from fanout.models.push import BatchCompletedMessage
from fanout.models.record import OperationTag, QueueRecord
from fanout.storage.batch_protocol import BatchProtocolTable
from fanout.strategies.base import Strategy


class LogBatchCompletedStrategy(Strategy[BatchCompletedMessage]):
    """Marks a fan-out batch as completed; repeating it rewrites the same item."""

    tag = OperationTag.BATCH_COMPLETED
    payload_model = BatchCompletedMessage

    def __init__(self, table: BatchProtocolTable):
        self.table = table

    async def perform(self, payload: BatchCompletedMessage, record: QueueRecord) -> None:
        await self.table.mark_completed(payload.batch_id, payload.notification)
