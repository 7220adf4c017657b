"""
Module: result.py
Description: Per-record and per-batch processing results.

Key Components:
- StrategyResult: Explicit success/failure returned by a strategy
- BatchItemResult: Outcome of one record, produced exactly once
- BatchResponse: Identifiers of failed records, in delivery order

Dependencies: pydantic, typing
Author: Fan-out Platform Team
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fanout.errors import FanoutError, PartialBatchFailure


class StrategyResult(BaseModel):
    """Outcome of executing a strategy against one record."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    succeeded: bool
    error: Optional[FanoutError] = None

    @classmethod
    def ok(cls) -> "StrategyResult":
        return cls(succeeded=True)

    @classmethod
    def failure(cls, error: FanoutError) -> "StrategyResult":
        return cls(succeeded=False, error=error)


class BatchItemResult(BaseModel):
    """Outcome of one queue record."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    succeeded: bool


class BatchResponse(BaseModel):
    """
    Batch response returned to the queue system.

    An empty failed_record_ids list signals full-batch success; the queue
    redelivers only the listed records.
    """

    model_config = ConfigDict(frozen=True)

    failed_record_ids: List[str] = Field(default_factory=list)
    total: int = 0

    @classmethod
    def from_results(cls, results: Iterable[BatchItemResult]) -> "BatchResponse":
        """Collect failed identifiers in delivery order."""
        results = list(results)
        return cls(
            failed_record_ids=[r.record_id for r in results if not r.succeeded],
            total=len(results),
        )

    @classmethod
    def all_failed(cls, records: Iterable[Dict[str, Any]]) -> "BatchResponse":
        """
        Report every record of a raw SQS batch as failed.

        Records without a messageId are reported with an empty identifier,
        which makes the queue system retry the entire batch.
        """
        ids = [
            (r.get('messageId') or "") if isinstance(r, dict) else ""
            for r in records
        ]
        return cls(failed_record_ids=ids, total=len(ids))

    @property
    def succeeded(self) -> bool:
        return not self.failed_record_ids

    def as_error(self) -> Optional[PartialBatchFailure]:
        """Aggregate error describing the failed records, None on full success."""
        if self.succeeded:
            return None
        return PartialBatchFailure(self.failed_record_ids, self.total)

    def to_lambda_response(self) -> Dict[str, Any]:
        """Render the SQS partial batch response expected by Lambda."""
        return {
            'batchItemFailures': [
                {'itemIdentifier': record_id} for record_id in self.failed_record_ids
            ]
        }
