"""
Module: dispatcher.py
Description: Batch dispatch with per-record failure isolation.

Processes an inbound SQS batch strictly in delivery order, one record
at a time. Every record yields exactly one BatchItemResult; a failing
record is logged and reported, and processing moves on to the next.

Key Components:
- BatchDispatcher.process_batch(): Batch to BatchResponse
- deadline_from_context(): Invocation deadline from the Lambda context

Dependencies: asyncio, time, typing
Author: Fan-out Platform Team
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from fanout.dispatch.registry import StrategyRegistry
from fanout.errors import FanoutError
from fanout.models.record import OperationTag, QueueRecord
from fanout.models.result import BatchItemResult, BatchResponse
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


def _record_id(raw: Any) -> str:
    if isinstance(raw, dict) and isinstance(raw.get('messageId'), str):
        return raw['messageId']
    # An empty identifier makes the queue system retry the whole batch
    return ""


def deadline_from_context(
    context: Any,
    margin_ms: int = 1000,
    clock: Callable[[], float] = time.monotonic
) -> Optional[float]:
    """
    Absolute deadline (in clock seconds) for finishing record processing.

    Returns None when the context cannot report its remaining time.
    """
    get_remaining = getattr(context, 'get_remaining_time_in_millis', None)
    if not callable(get_remaining):
        return None
    return clock() + (get_remaining() - margin_ms) / 1000.0


class BatchDispatcher:
    """
    Dispatches queue records to their strategies.

    Records run sequentially in delivery order and never concurrently,
    so collaborators shared through the registry need no locking.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        default_tag: Optional[OperationTag] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize dispatcher.

        Args:
            registry: Strategies by operation tag
            default_tag: Tag for record bodies without an operation envelope
            clock: Monotonic clock deadlines are measured against
        """
        self.registry = registry
        self.default_tag = default_tag
        self.clock = clock

    async def process_batch(
        self,
        records: Sequence[Dict[str, Any]],
        deadline: Optional[float] = None
    ) -> BatchResponse:
        """
        Process a batch of SQS records.

        Args:
            records: event['Records'] in delivery order
            deadline: Clock time by which processing must stop; the record
                running at the deadline and every later record are
                reported failed

        Returns:
            BatchResponse naming exactly the failed records
        """
        records = list(records)
        results: List[BatchItemResult] = []

        logger.info("Processing batch", record_count=len(records))

        for position, raw in enumerate(records):
            timeout = None
            if deadline is not None:
                timeout = deadline - self.clock()
                if timeout <= 0:
                    self._fail_remaining(records[position:], results)
                    break

            result, timed_out = await self._process_record(raw, timeout)
            results.append(result)

            if timed_out:
                self._fail_remaining(records[position + 1:], results)
                break

        response = BatchResponse.from_results(results)
        partial_failure = response.as_error()

        if partial_failure is None:
            logger.info("Batch processed", record_count=response.total)
        else:
            logger.warning(
                "Batch processed with failures",
                record_count=response.total,
                failed_count=len(partial_failure.failed_record_ids),
                failed_record_ids=partial_failure.failed_record_ids
            )

        return response

    async def _process_record(
        self,
        raw: Dict[str, Any],
        timeout: Optional[float]
    ) -> Tuple[BatchItemResult, bool]:
        """
        Process one record.

        Returns:
            The record's result and whether it ran into the deadline
        """
        record_id = _record_id(raw)

        try:
            record = QueueRecord.from_sqs(raw, default_tag=self.default_tag)
            strategy = self.registry.resolve(record.operation_tag)

        except FanoutError as e:
            logger.warning(
                "Record rejected before dispatch",
                record_id=record_id,
                error=e.message,
                error_type=type(e).__name__
            )
            return BatchItemResult(record_id=record_id, succeeded=False), False

        logger.debug(
            "Dispatching record",
            record_id=record_id,
            operation_tag=record.operation_tag
        )

        try:
            if timeout is None:
                outcome = await strategy.execute(record)
            else:
                outcome = await asyncio.wait_for(strategy.execute(record), timeout)

        except asyncio.TimeoutError:
            logger.error(
                "Record processing ran into the invocation deadline",
                record_id=record_id,
                operation_tag=record.operation_tag
            )
            return BatchItemResult(record_id=record_id, succeeded=False), True

        except Exception as e:
            logger.error(
                "Strategy raised instead of returning a result",
                record_id=record_id,
                operation_tag=record.operation_tag,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
            return BatchItemResult(record_id=record_id, succeeded=False), False

        if outcome.succeeded:
            logger.debug("Record succeeded", record_id=record_id, operation_tag=record.operation_tag)
        else:
            logger.warning(
                "Record failed",
                record_id=record_id,
                operation_tag=record.operation_tag,
                error=outcome.error.message if outcome.error else None,
                error_type=type(outcome.error).__name__ if outcome.error else None
            )

        return BatchItemResult(record_id=record_id, succeeded=outcome.succeeded), False

    def _fail_remaining(self, remaining: Sequence[Dict[str, Any]], results: List[BatchItemResult]) -> None:
        """Report records that were not attempted before the deadline."""
        if not remaining:
            return

        skipped = [_record_id(raw) for raw in remaining]
        logger.error(
            "Deadline reached, reporting unprocessed records as failed",
            skipped_record_ids=skipped
        )
        results.extend(BatchItemResult(record_id=record_id, succeeded=False) for record_id in skipped)
