"""
Module: record.py
Description: Queue record envelope and operation tags.

Every message handled by a dispatcher carries an operation tag that
selects its strategy and a strategy-specific payload. The record is
parsed once from the SQS event record and is immutable afterwards.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from fanout.errors import RecordValidationError


class OperationTag(str, Enum):
    """Operation a queue record asks for."""

    REGISTER_DEVICE = "REGISTER_DEVICE"
    DELETE_DEVICE = "DELETE_DEVICE"
    PUSH_ALL = "PUSH_ALL"
    PUSH_SELECTED = "PUSH_SELECTED"
    BATCH_COMPLETED = "BATCH_COMPLETED"


class QueueRecord(BaseModel):
    """
    Parsed queue record.

    Attributes:
        record_id: SQS message id, reported back on failure
        operation_tag: Raw operation tag (resolved by the registry)
        payload: Strategy-specific payload
        receipt_handle: SQS receipt handle, when present
    """

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(..., min_length=1)
    operation_tag: str = Field(..., min_length=1)
    payload: Dict[str, Any]
    receipt_handle: Optional[str] = None

    @classmethod
    def from_sqs(
        cls,
        record: Dict[str, Any],
        default_tag: Optional[OperationTag] = None
    ) -> "QueueRecord":
        """
        Parse an SQS event record.

        The body is either an envelope {"operationTag": ..., "payload": {...}}
        or, when default_tag is given and the body has no operationTag, a
        bare payload object.

        Args:
            record: One entry of event['Records']
            default_tag: Tag applied to bodies without an envelope

        Returns:
            Parsed QueueRecord

        Raises:
            RecordValidationError: If the record or its body is malformed
        """
        if not isinstance(record, dict):
            raise RecordValidationError("record must be a dictionary")

        record_id = record.get('messageId')
        if not record_id or not isinstance(record_id, str):
            raise RecordValidationError("record has no messageId")

        try:
            body = json.loads(record.get('body') or "")
        except (TypeError, ValueError) as e:
            raise RecordValidationError(
                f"record body is not valid JSON: {e}",
                record_id=record_id
            ) from e

        if not isinstance(body, dict):
            raise RecordValidationError("record body must be a JSON object", record_id=record_id)

        tag = body.get('operationTag')
        if tag is not None:
            payload = body.get('payload')
        elif default_tag is not None:
            tag = default_tag.value
            payload = body
        else:
            raise RecordValidationError("record body has no operationTag", record_id=record_id)

        if not isinstance(tag, str) or not tag.strip():
            raise RecordValidationError("operationTag must be a non-empty string", record_id=record_id)
        if not isinstance(payload, dict):
            raise RecordValidationError("payload must be a JSON object", record_id=record_id)

        return cls(
            record_id=record_id,
            operation_tag=tag.strip(),
            payload=payload,
            receipt_handle=record.get('receiptHandle'),
        )


def envelope(tag: OperationTag, payload: Dict[str, Any]) -> str:
    """Serialise a payload into a queue message body for the given tag."""
    return json.dumps({'operationTag': tag.value, 'payload': payload})
