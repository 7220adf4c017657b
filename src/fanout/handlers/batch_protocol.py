"""
Module: batch_protocol.py
Description: SQS Lambda handler recording completed push batches.
"""

from typing import Any, Dict, Optional

from fanout.config.settings import Settings, get_settings
from fanout.dispatch.dispatcher import BatchDispatcher
from fanout.dispatch.registry import StrategyRegistry
from fanout.handlers.runtime import run_batch
from fanout.models.record import OperationTag
from fanout.storage.batch_protocol import BatchProtocolTable
from fanout.storage.pool import LazyResource
from fanout.strategies.batch_protocol import LogBatchCompletedStrategy


def build_dispatcher(settings: Optional[Settings] = None) -> BatchDispatcher:
    settings = settings or get_settings()
    settings.require('batch_table_name')

    return BatchDispatcher(
        StrategyRegistry([LogBatchCompletedStrategy(BatchProtocolTable(settings.batch_table_name))]),
        default_tag=OperationTag.BATCH_COMPLETED,
    )


dispatcher = LazyResource(build_dispatcher, name="batch_protocol_dispatcher")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda handler for the batch protocol queue."""
    return run_batch(event, context, dispatcher)
