"""
Module: base.py
Description: Common capability of every operation strategy.

A strategy validates its own payload shape and then performs the
operation against its collaborators. Both steps report through an
explicit StrategyResult; nothing a strategy raises leaves execute().
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

from fanout.errors import DownstreamError, FanoutError, RecordValidationError
from fanout.models.record import OperationTag, QueueRecord
from fanout.models.result import StrategyResult
from fanout.utils.logger import get_logger

logger = get_logger(__name__)

P = TypeVar('P', bound=BaseModel)


class Strategy(ABC, Generic[P]):
    """
    Executes one kind of queue record.

    Subclasses set `tag` and `payload_model` and implement perform().
    perform() must be safe to run more than once for the same record,
    since failed records are redelivered verbatim.
    """

    tag: ClassVar[OperationTag]
    payload_model: ClassVar[Type[BaseModel]]

    def parse(self, record: QueueRecord) -> P:
        """
        Validate the record payload.

        Raises:
            RecordValidationError: If the payload does not match payload_model
        """
        try:
            return self.payload_model.model_validate(record.payload)
        except ValidationError as e:
            raise RecordValidationError(
                f"Invalid {self.tag.value} payload: {e.error_count()} validation error(s)",
                record_id=record.record_id
            ) from e

    @abstractmethod
    async def perform(self, payload: P, record: QueueRecord) -> None:
        """
        Perform the operation.

        Raises:
            FanoutError: Any failure; other exceptions are reported as
                DownstreamError by execute()
        """

    async def execute(self, record: QueueRecord) -> StrategyResult:
        """Validate and perform, converting every failure into a result."""
        try:
            payload = self.parse(record)
            await self.perform(payload, record)

        except FanoutError as e:
            if e.record_id is None:
                e.record_id = record.record_id
            logger.warning(
                "Strategy failed",
                record_id=record.record_id,
                operation_tag=self.tag.value,
                error=e.message,
                error_type=type(e).__name__
            )
            return StrategyResult.failure(e)

        except Exception as e:
            logger.error(
                "Strategy raised unexpected error",
                record_id=record.record_id,
                operation_tag=self.tag.value,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
            return StrategyResult.failure(DownstreamError(str(e), record_id=record.record_id))

        return StrategyResult.ok()
