"""
Module: errors.py
Description: Error kinds raised and reported by the fan-out handlers.

Record-level errors (RecordValidationError, UnknownOperation,
DownstreamError) are converted into failed batch items by the dispatcher
and never escape an invocation. ConfigurationError is raised while
building process resources and fails the whole batch.
"""

from typing import List, Optional


class FanoutError(Exception):
    """Base class for all fan-out handler errors."""

    retryable: bool = True

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.record_id = record_id


class RecordValidationError(FanoutError):
    """
    A queue record is malformed.

    Not fixable by replaying the record as-is, but still reported failed
    so the queue's redrive policy decides its fate.
    """

    retryable = False


class UnknownOperation(FanoutError):
    """No strategy is registered for the record's operation tag."""

    retryable = False

    def __init__(self, operation_tag: str, record_id: Optional[str] = None):
        super().__init__(
            f"No strategy registered for operation '{operation_tag}'",
            record_id=record_id
        )
        self.operation_tag = operation_tag


class DownstreamError(FanoutError):
    """A credential, storage, database, queue or push provider call failed."""


class ConfigurationError(FanoutError):
    """Required configuration is missing or invalid."""

    retryable = False


class PartialBatchFailure(FanoutError):
    """
    Aggregate of the records that failed within one batch.

    Describes the outcome of an invocation for logging; the invocation
    itself still completes and returns a batch response.
    """

    def __init__(self, failed_record_ids: List[str], total: int):
        super().__init__(
            f"{len(failed_record_ids)} of {total} records failed"
        )
        self.failed_record_ids = list(failed_record_ids)
        self.total = total
