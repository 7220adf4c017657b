"""
Module: notification_queuer.py
Description: Lambda handler enqueuing fan-out batches for one alert notification.

Invoked with a single alert notification. Errors propagate so that the
asynchronous invocation is retried.
"""

import asyncio
from typing import Any, Dict, Optional

from pydantic import ValidationError

from fanout.config.settings import Settings, get_settings
from fanout.errors import RecordValidationError
from fanout.handlers.runtime import build_query_runner
from fanout.models.notification import AlertNotification, FlowControl
from fanout.services.notification_prepper import NotificationPrepper, NotificationSink, SqlSelectedTokenSource
from fanout.sqs_queue.sqs import SQSClient
from fanout.storage.batch_protocol import BatchProtocolTable
from fanout.storage.chunk_store import S3ChunkStore
from fanout.storage.pool import LazyResource
from fanout.utils.logger import bind_invocation_context, configure_logging, get_logger

logger = get_logger(__name__)


def build_prepper(settings: Optional[Settings] = None) -> NotificationPrepper:
    """
    Prepper for the deployment's flow control mode.

    Flow ALL lists chunks in the chunk bucket, flow SELECTED queries the
    read-only database endpoint.
    """
    settings = settings or get_settings()

    protocol = None
    if settings.batch_table_name:
        protocol = BatchProtocolTable(settings.batch_table_name)

    chunk_store = None
    token_source = None
    if settings.flow_control is FlowControl.ALL:
        settings.require('chunk_bucket_name')
        chunk_store = S3ChunkStore(settings.chunk_bucket_name)
    else:
        runner = build_query_runner(
            settings,
            application_name=f"{settings.stage}-notification-queuer",
            readonly=True
        )
        token_source = SqlSelectedTokenSource(runner, settings.selected_tokens_query)

    return NotificationPrepper(
        routing_config=settings.routing_config(),
        sink=NotificationSink(SQSClient(), protocol),
        chunk_store=chunk_store,
        token_source=token_source,
        selected_retrieval_size=settings.selected_retrieval_size,
        selected_tokens_per_message=settings.selected_tokens_per_message,
    )


prepper = LazyResource(build_prepper, name="notification_prepper")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for alert notifications.

    Args:
        event: Alert notification
        context: Lambda context

    Returns:
        Summary of the enqueued batches

    Raises:
        RecordValidationError: If the event is not a valid alert notification
    """
    bind_invocation_context(context)
    configure_logging(get_settings().log_level)

    try:
        notification = AlertNotification.model_validate(event)
    except ValidationError as e:
        logger.error("Invalid alert notification", errors=e.errors(include_url=False))
        raise RecordValidationError("Invalid alert notification") from e

    logger.debug("Received alert notification, determining receivers", alert_id=notification.alert_key)

    summary = asyncio.run(prepper.get().enqueue(notification))
    return summary.model_dump(mode='json')
