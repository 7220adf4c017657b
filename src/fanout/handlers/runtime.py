"""
Module: runtime.py
Description: Shared plumbing of the queue-triggered Lambda handlers.

Key Components:
- run_batch(): Run an SQS batch through a lazily built dispatcher
- build_query_runner(): Postgres pool from Secrets Manager credentials
- readonly_host(): Reader endpoint of an Aurora cluster host
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fanout.config.settings import Settings, get_settings
from fanout.dispatch.dispatcher import BatchDispatcher, deadline_from_context
from fanout.models.result import BatchResponse
from fanout.storage.credentials import SecretsManagerCredentialProvider
from fanout.storage.pool import LazyResource, PostgresPool
from fanout.utils.logger import bind_invocation_context, configure_logging, get_logger

logger = get_logger(__name__)


def _records(event: Any) -> List[Any]:
    if isinstance(event, dict) and isinstance(event.get('Records'), list):
        return event['Records']
    return []


def run_batch(
    event: Dict[str, Any],
    context: Any,
    dispatcher: LazyResource[BatchDispatcher],
    settings_loader: Callable[[], Settings] = get_settings
) -> Dict[str, Any]:
    """
    Process an SQS event with the handler's dispatcher.

    Failing to load settings or to build the dispatcher is an
    invocation-level failure: every record of the batch is reported
    failed and will be redelivered.

    Args:
        event: SQS event with batch of messages
        context: Lambda context
        dispatcher: The handler's process-wide dispatcher holder
        settings_loader: Settings source

    Returns:
        Response with batch item failures (if any)
    """
    bind_invocation_context(context)
    records = _records(event)

    try:
        settings = settings_loader()
        configure_logging(settings.log_level)
        batch_dispatcher = dispatcher.get()

    except Exception as e:
        logger.error(
            "Failed to acquire handler resources, failing the whole batch",
            record_count=len(records),
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True
        )
        return BatchResponse.all_failed(records).to_lambda_response()

    deadline = deadline_from_context(context, settings.dispatch_timeout_margin_ms)
    response = asyncio.run(batch_dispatcher.process_batch(records, deadline))

    return response.to_lambda_response()


def readonly_host(host: str) -> str:
    """Aurora reader endpoint for a cluster writer endpoint."""
    if 'cluster-ro-' in host:
        return host
    return host.replace('cluster-', 'cluster-ro-', 1)


def build_query_runner(
    settings: Settings,
    application_name: str,
    readonly: bool = False,
    credential_provider: Optional[SecretsManagerCredentialProvider] = None
) -> PostgresPool:
    """
    Create the process-wide Postgres pool.

    Raises:
        ConfigurationError: If no RDS secret is configured
        DownstreamError: If credentials or the pool cannot be obtained
    """
    settings.require('rds_secret_id')
    provider = credential_provider or SecretsManagerCredentialProvider()
    credentials = provider.get_credentials(settings.rds_secret_id)

    host = None
    if readonly:
        host = settings.rds_host_readonly or readonly_host(credentials.host)

    return PostgresPool(
        credentials,
        application_name=application_name,
        max_connections=settings.rds_pool_max_connections,
        host=host,
        database=settings.rds_database,
    )
