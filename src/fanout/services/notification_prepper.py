"""
Module: notification_prepper.py
Description: Enqueues fan-out batches for an alert notification.

Determines the receivers of an alert according to the deployment's flow
control mode and publishes one queue message per batch of receivers to
the queue chosen by the FlowRouter.

Key Components:
- NotificationPrepper.enqueue(): Route and publish one notification
- NotificationSink: Publishes batch messages and records them as queued
- SqlSelectedTokenSource: Pages tokens of matching devices

Flow ALL lists the cached token chunks of the alert's provider, platform
and severity and publishes one PUSH_ALL message per chunk. Flow SELECTED
pages device tokens by severity level and region and publishes one
PUSH_SELECTED message per group of tokens.
"""

import uuid
from typing import Callable, List, Optional, Protocol

from pydantic import BaseModel, ValidationError

from fanout.chunks.address import ChunkAddressBuilder
from fanout.errors import ConfigurationError
from fanout.models.notification import AlertNotification, FlowControl
from fanout.models.push import AllChunkMessage, ChunkReference, SelectedTokensMessage
from fanout.models.record import OperationTag, envelope
from fanout.routing.flow_router import FlowRouter, QueueDestination, RoutingConfig
from fanout.sqs_queue.sqs import MAX_BATCH_ENTRIES, SQSClient
from fanout.storage.batch_protocol import BatchProtocolTable
from fanout.storage.chunk_store import ChunkStore
from fanout.storage.pool import QueryRunner
from fanout.utils.batch_helpers import chunk_list
from fanout.utils.logger import get_logger
from fanout.utils.severity import SeverityLevel, classify

logger = get_logger(__name__)


class EnqueueSummary(BaseModel):
    """What one enqueue call published."""

    flow_control: FlowControl
    batch_count: int = 0
    item_count: int = 0


class SelectedTokenSource(Protocol):
    """Pages the tokens of devices selected for a notification."""

    async def get_tokens(
        self,
        notification: AlertNotification,
        level: SeverityLevel,
        offset: int,
        limit: int
    ) -> List[str]:
        ...


class SqlSelectedTokenSource:
    """
    Token source on the device table.

    The query receives the named parameters platform, provider, level,
    region_keys, limit and offset and returns a pushtoken column.
    """

    def __init__(self, runner: QueryRunner, query: str):
        if not query:
            raise ValueError("query must be a non-empty string")
        self.runner = runner
        self.query = query

    async def get_tokens(
        self,
        notification: AlertNotification,
        level: SeverityLevel,
        offset: int,
        limit: int
    ) -> List[str]:
        result = await self.runner.query(self.query, {
            'platform': notification.platform.value,
            'provider': notification.provider,
            'level': int(level),
            'region_keys': list(notification.region_keys),
            'limit': limit,
            'offset': offset,
        })
        return [row['pushtoken'] for row in result.rows]


class NotificationSink:
    """Publishes fan-out batch messages and records them in the batch protocol."""

    def __init__(
        self,
        sqs_client: SQSClient,
        protocol: Optional[BatchProtocolTable] = None,
        batch_id_factory: Callable[[], str] = lambda: str(uuid.uuid4())
    ):
        self.sqs_client = sqs_client
        self.protocol = protocol
        self.batch_id_factory = batch_id_factory

    async def publish_chunks(
        self,
        destination: QueueDestination,
        notification: AlertNotification,
        bucket: str,
        keys: List[str]
    ) -> List[str]:
        """
        Publish one PUSH_ALL message per chunk key, at most ten per request.

        Returns:
            Batch ids of the published messages
        """
        entries = []
        for key in keys:
            batch_id = self.batch_id_factory()
            message = AllChunkMessage(
                batch_id=batch_id,
                notification=notification,
                s3=ChunkReference(bucket=bucket, key=key),
            )
            entries.append((batch_id, envelope(OperationTag.PUSH_ALL, message.to_message())))

        batch_ids = []
        for group in chunk_list(entries, MAX_BATCH_ENTRIES):
            await self.sqs_client.send_message_batch(destination.queue_url, group)
            group_ids = [batch_id for batch_id, _ in group]
            await self._mark_queued(notification, group_ids)
            batch_ids.extend(group_ids)

        return batch_ids

    async def publish_tokens(
        self,
        destination: QueueDestination,
        notification: AlertNotification,
        tokens: List[str]
    ) -> str:
        """
        Publish one PUSH_SELECTED message carrying the tokens.

        Returns:
            Batch id of the published message
        """
        batch_id = self.batch_id_factory()
        message = SelectedTokensMessage(batch_id=batch_id, notification=notification, tokens=tokens)

        await self.sqs_client.send_message(
            destination.queue_url,
            envelope(OperationTag.PUSH_SELECTED, message.to_message()),
            entry_id=batch_id
        )
        await self._mark_queued(notification, [batch_id])

        return batch_id

    async def _mark_queued(self, notification: AlertNotification, batch_ids: List[str]) -> None:
        if self.protocol is not None:
            await self.protocol.mark_queued(notification, batch_ids)


class NotificationPrepper:
    """
    Determines the receivers of a notification and enqueues their batches.

    Batches are published one after another; a failure stops the
    enqueue and propagates to the caller.
    """

    def __init__(
        self,
        routing_config: RoutingConfig,
        sink: NotificationSink,
        router: Optional[FlowRouter] = None,
        chunk_store: Optional[ChunkStore] = None,
        token_source: Optional[SelectedTokenSource] = None,
        address_builder: Optional[ChunkAddressBuilder] = None,
        selected_retrieval_size: int = 50000,
        selected_tokens_per_message: int = 500
    ):
        if selected_retrieval_size < 1 or selected_tokens_per_message < 1:
            raise ValueError("retrieval size and tokens per message must be positive")

        self.routing_config = routing_config
        self.sink = sink
        self.router = router or FlowRouter()
        self.chunk_store = chunk_store
        self.token_source = token_source
        self.address_builder = address_builder or ChunkAddressBuilder()
        self.selected_retrieval_size = selected_retrieval_size
        self.selected_tokens_per_message = selected_tokens_per_message

    async def enqueue(self, notification: AlertNotification) -> EnqueueSummary:
        """
        Route a notification and publish its batches.

        Raises:
            ConfigurationError: If the flow's collaborators are not configured
            DownstreamError: If listing, querying or publishing fails
        """
        destinations = self.router.route(self.routing_config, notification)
        summary = EnqueueSummary(flow_control=self.routing_config.flow_control)

        logger.info(
            "Enqueuing notification",
            alert_id=notification.alert_key,
            flow_control=summary.flow_control.value,
            queues=sorted(d.queue_url for d in destinations)
        )

        for destination in sorted(destinations, key=lambda d: d.platform.value):
            if destination.mode is FlowControl.ALL:
                await self._enqueue_all(destination, notification, summary)
            else:
                await self._enqueue_selected(destination, notification, summary)

        logger.info(
            "Enqueued notification",
            alert_id=notification.alert_key,
            batch_count=summary.batch_count,
            item_count=summary.item_count
        )

        return summary

    async def _enqueue_all(
        self,
        destination: QueueDestination,
        notification: AlertNotification,
        summary: EnqueueSummary
    ) -> None:
        if self.chunk_store is None:
            raise ConfigurationError("Flow 'all' requires a chunk store")

        try:
            prefix = self.address_builder.prefix(
                notification.provider,
                destination.platform.value,
                notification.severity,
            )
        except ValidationError as e:
            # no chunk can exist under an unaddressable triple
            logger.warning(
                "No chunk set for notification",
                alert_id=notification.alert_key,
                provider=notification.provider,
                severity=notification.severity,
                errors=e.errors(include_url=False)
            )
            return

        continuation_token = None

        while True:
            listing = await self.chunk_store.list_keys(prefix, continuation_token)

            if listing.keys:
                batch_ids = await self.sink.publish_chunks(
                    destination, notification, self.chunk_store.bucket_name, listing.keys
                )
                summary.batch_count += len(batch_ids)
                summary.item_count += len(listing.keys)

            logger.debug(
                "Enqueued chunk page",
                alert_id=notification.alert_key,
                prefix=prefix,
                chunk_count=len(listing.keys)
            )

            continuation_token = listing.continuation_token
            if not continuation_token:
                break

    async def _enqueue_selected(
        self,
        destination: QueueDestination,
        notification: AlertNotification,
        summary: EnqueueSummary
    ) -> None:
        if self.token_source is None:
            raise ConfigurationError("Flow 'selected' requires a token source")

        level = classify(notification.severity)
        offset = 0

        while True:
            tokens = await self.token_source.get_tokens(
                notification, level, offset, self.selected_retrieval_size
            )

            logger.debug(
                "Queried selected tokens",
                alert_id=notification.alert_key,
                level=int(level),
                offset=offset,
                token_count=len(tokens)
            )

            for group in chunk_list(tokens, self.selected_tokens_per_message):
                await self.sink.publish_tokens(destination, notification, group)
                summary.batch_count += 1
                summary.item_count += len(group)

            if len(tokens) < self.selected_retrieval_size:
                break
            offset += self.selected_retrieval_size
