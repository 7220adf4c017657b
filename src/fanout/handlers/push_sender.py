"""
Module: push_sender.py
Description: SQS Lambda handler sending push batches.

Consumes the fan-out queues filled by the notification queuer. Bodies
without an operation envelope are treated as PUSH_ALL or PUSH_SELECTED
depending on the deployment's flow control mode.
"""

from typing import Any, Dict, Optional

from fanout.config.settings import Settings, get_settings
from fanout.delivery.push import HttpPushGatewayClient
from fanout.dispatch.dispatcher import BatchDispatcher
from fanout.dispatch.registry import StrategyRegistry
from fanout.errors import ConfigurationError
from fanout.handlers.runtime import run_batch
from fanout.models.notification import FlowControl
from fanout.models.record import OperationTag
from fanout.sqs_queue.sqs import SQSClient
from fanout.storage.chunk_store import S3ChunkStore
from fanout.storage.pool import LazyResource
from fanout.strategies.push import PushToAllStrategy, PushToSelectedStrategy, SqsCompletionReporter
from fanout.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TAGS = {
    FlowControl.ALL: OperationTag.PUSH_ALL,
    FlowControl.SELECTED: OperationTag.PUSH_SELECTED,
}


def build_dispatcher(settings: Optional[Settings] = None) -> BatchDispatcher:
    """
    Dispatcher for PUSH_ALL and PUSH_SELECTED records.

    Raises:
        ConfigurationError: If no push gateway, or no chunk bucket for flow ALL, is configured
    """
    settings = settings or get_settings()

    senders = {
        platform: HttpPushGatewayClient(url, timeout_seconds=settings.push_timeout_seconds)
        for platform, url in settings.push_gateway_urls().items()
    }
    if not senders:
        raise ConfigurationError("No push gateway configured")

    reporter = None
    if settings.sqs_queue_url_batch_protocol:
        reporter = SqsCompletionReporter(SQSClient(), settings.sqs_queue_url_batch_protocol)

    strategies = [PushToSelectedStrategy(senders, reporter)]

    if settings.flow_control is FlowControl.ALL:
        settings.require('chunk_bucket_name')
    if settings.chunk_bucket_name:
        strategies.append(PushToAllStrategy(S3ChunkStore(settings.chunk_bucket_name), senders, reporter))

    logger.info(
        "Push sender configured",
        flow_control=settings.flow_control.value,
        platforms=sorted(p.value for p in senders),
        reports_completion=reporter is not None
    )

    return BatchDispatcher(
        StrategyRegistry(strategies),
        default_tag=DEFAULT_TAGS[settings.flow_control],
    )


dispatcher = LazyResource(build_dispatcher, name="push_sender_dispatcher")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda handler for the push fan-out queues."""
    return run_batch(event, context, dispatcher)
