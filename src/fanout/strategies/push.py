"""
Module: push.py
Description: Push fan-out strategies.

Key Components:
- PushToAllStrategy: Sends one cached token chunk in a bulk call
- PushToSelectedStrategy: Sends to each selected token individually
- CompletionReporter / SqsCompletionReporter: Batch completion notices

A record fails only when tokens failed transiently; tokens the provider
rejects as invalid are logged and do not cause redelivery.
"""

from typing import Dict, List, Optional, Protocol

from fanout.delivery.push import PushOutcome, PushSender
from fanout.errors import ConfigurationError, DownstreamError, FanoutError, RecordValidationError
from fanout.models.notification import AlertNotification, Platform
from fanout.models.push import AllChunkMessage, BatchCompletedMessage, PushMessage, SelectedTokensMessage
from fanout.models.record import OperationTag, QueueRecord, envelope
from fanout.sqs_queue.sqs import SQSClient
from fanout.storage.chunk_store import ChunkStore
from fanout.strategies.base import Strategy
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


class CompletionReporter(Protocol):
    """Announces that a fan-out batch has been sent."""

    async def report_completed(self, batch_id: str, notification: AlertNotification) -> None:
        ...


class SqsCompletionReporter:
    """Publishes BATCH_COMPLETED records to the batch protocol queue."""

    def __init__(self, sqs_client: SQSClient, queue_url: str):
        if not queue_url:
            raise ValueError("queue_url must be a non-empty string")
        self.sqs_client = sqs_client
        self.queue_url = queue_url

    async def report_completed(self, batch_id: str, notification: AlertNotification) -> None:
        message = BatchCompletedMessage(batch_id=batch_id, notification=notification)
        await self.sqs_client.send_message(
            self.queue_url,
            envelope(OperationTag.BATCH_COMPLETED, message.to_message()),
            entry_id=batch_id
        )


class PushStrategy(Strategy):
    """Sender lookup and completion reporting shared by both push flows."""

    def __init__(
        self,
        senders: Dict[Platform, PushSender],
        reporter: Optional[CompletionReporter] = None
    ):
        self.senders = dict(senders)
        self.reporter = reporter

    def sender_for(self, platform: Platform) -> PushSender:
        sender = self.senders.get(platform)
        if sender is None:
            raise ConfigurationError(f"No push sender configured for platform '{platform.value}'")
        return sender

    def check_outcomes(self, batch_id: str, outcomes: List[PushOutcome]) -> None:
        """
        Raise if any token failed transiently.

        Raises:
            DownstreamError: Naming the number of failed tokens
        """
        failed = sum(1 for o in outcomes if o.retryable)
        rejected = sum(1 for o in outcomes if o is PushOutcome.REJECTED)

        logger.info(
            "Push batch sent",
            batch_id=batch_id,
            token_count=len(outcomes),
            failed_count=failed,
            rejected_count=rejected
        )

        if failed:
            raise DownstreamError(f"{failed} of {len(outcomes)} tokens failed for batch '{batch_id}'")

    async def report(self, batch_id: str, notification: AlertNotification) -> None:
        """Report completion; a lost notice never fails an already sent batch."""
        if self.reporter is None:
            return
        try:
            await self.reporter.report_completed(batch_id, notification)
        except FanoutError as e:
            logger.warning(
                "Failed to report batch completion",
                batch_id=batch_id,
                alert_id=notification.alert_key,
                error=e.message
            )


class PushToAllStrategy(PushStrategy):
    """Loads one cached chunk of tokens and sends it in a single bulk call."""

    tag = OperationTag.PUSH_ALL
    payload_model = AllChunkMessage

    def __init__(
        self,
        chunk_store: ChunkStore,
        senders: Dict[Platform, PushSender],
        reporter: Optional[CompletionReporter] = None
    ):
        super().__init__(senders, reporter)
        self.chunk_store = chunk_store

    async def perform(self, payload: AllChunkMessage, record: QueueRecord) -> None:
        notification = payload.notification

        if payload.s3.bucket != self.chunk_store.bucket_name:
            raise RecordValidationError(
                f"Chunk bucket '{payload.s3.bucket}' is not the configured chunk bucket",
                record_id=record.record_id
            )

        sender = self.sender_for(notification.platform)
        tokens = await self.chunk_store.get_tokens(payload.s3.key)

        logger.debug(
            "Loaded token chunk",
            record_id=record.record_id,
            batch_id=payload.batch_id,
            key=payload.s3.key,
            token_count=len(tokens)
        )

        outcomes = await sender.send_bulk(tokens, PushMessage.from_notification(notification))
        self.check_outcomes(payload.batch_id, outcomes)
        await self.report(payload.batch_id, notification)


class PushToSelectedStrategy(PushStrategy):
    """Sends to every selected token with its own provider call."""

    tag = OperationTag.PUSH_SELECTED
    payload_model = SelectedTokensMessage

    async def perform(self, payload: SelectedTokensMessage, record: QueueRecord) -> None:
        notification = payload.notification
        sender = self.sender_for(notification.platform)
        message = PushMessage.from_notification(notification)

        outcomes = []
        for token in payload.tokens:
            outcomes.append(await sender.send(token, message))

        self.check_outcomes(payload.batch_id, outcomes)
        await self.report(payload.batch_id, notification)
