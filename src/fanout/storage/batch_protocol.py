"""
Module: batch_protocol.py
Description: DynamoDB protocol of fan-out batches.

Records when each fan-out batch of an alert was queued and when it
completed, so the watchdog can spot batches that never finished.

Key Components:
- BatchProtocolTable: DynamoDB client for the batch protocol table
- mark_queued(): One row per enqueued batch
- mark_completed(): Completion time and elapsed seconds since receipt

Dependencies: boto3, botocore, datetime, decimal, typing
Author: Fan-out Platform Team
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

import boto3
from botocore.exceptions import ClientError

from fanout.errors import DownstreamError
from fanout.models.notification import AlertNotification
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchProtocolTable:
    """
    DynamoDB client for batch protocol operations.

    Items are keyed by alertId ("{alert id}:{platform}") and batchId.
    Both writes are updates or overwrites of the same key, so they can
    be repeated safely.

    Attributes:
        table_name: Name of the batch protocol table
        dynamodb: boto3 DynamoDB resource
        table: boto3 DynamoDB table resource
    """

    def __init__(self, table_name: str, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize batch protocol client.

        Args:
            table_name: Name of the batch protocol table
            clock: Source of the current time

        Raises:
            ValueError: If table_name is empty or invalid
        """
        if not table_name or not isinstance(table_name, str):
            raise ValueError("table_name must be a non-empty string")

        self.table_name = table_name
        self.clock = clock or _utcnow
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

        logger.info("Batch protocol table initialized", table_name=table_name)

    async def mark_queued(self, notification: AlertNotification, batch_ids: List[str]) -> None:
        """
        Record that batches were enqueued.

        Raises:
            DownstreamError: If the DynamoDB operation fails
        """
        queued = self.clock().isoformat()

        try:
            with self.table.batch_writer() as writer:
                for batch_id in batch_ids:
                    writer.put_item(Item={
                        'alertId': notification.alert_key,
                        'batchId': batch_id,
                        'queued': queued,
                    })

            logger.debug(
                "Batch protocol written for enqueued batches",
                alert_id=notification.alert_key,
                batch_count=len(batch_ids),
                table_name=self.table_name
            )

        except ClientError as e:
            logger.error(
                "Failed to write batch protocol for enqueued batches",
                alert_id=notification.alert_key,
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError("Failed to write batch protocol") from e

    async def mark_completed(self, batch_id: str, notification: AlertNotification) -> None:
        """
        Record that a batch finished sending.

        Raises:
            DownstreamError: If the DynamoDB operation fails
        """
        completed = self.clock()
        values = {
            ':b': completed.isoformat(),
        }
        update_expression = 'SET completed = :b'

        if notification.received is not None:
            received = notification.received
            if received.tzinfo is None:
                received = received.replace(tzinfo=timezone.utc)
            elapsed = abs((completed - received).total_seconds())
            values[':a'] = received.isoformat()
            values[':c'] = Decimal(str(round(elapsed, 3)))
            update_expression += ', alertCreated = :a, elapsedTime = :c'

        try:
            self.table.update_item(
                Key={
                    'alertId': notification.alert_key,
                    'batchId': batch_id,
                },
                UpdateExpression=update_expression,
                ExpressionAttributeValues=values,
            )

            logger.debug(
                "Batch completion logged",
                alert_id=notification.alert_key,
                batch_id=batch_id,
                table_name=self.table_name
            )

        except ClientError as e:
            logger.error(
                "Failed to log batch completion",
                alert_id=notification.alert_key,
                batch_id=batch_id,
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError("Failed to log batch completion") from e
