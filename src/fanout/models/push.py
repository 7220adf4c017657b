"""
Module: push.py
Description: Push fan-out message payloads.

Payloads published by the notification queuer and consumed by the
push sender and batch protocol handlers.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fanout.models.notification import AlertNotification


class ChunkReference(BaseModel):
    """Location of a token chunk in object storage."""

    bucket: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)


class BatchMessage(BaseModel):
    """Fields shared by every fan-out batch message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    batch_id: str = Field(..., min_length=1, alias="batchId")
    notification: AlertNotification

    def to_message(self) -> Dict[str, Any]:
        """Serialise for a queue message payload."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AllChunkMessage(BatchMessage):
    """Payload of a PUSH_ALL record: one chunk of cached device tokens."""

    s3: ChunkReference


class SelectedTokensMessage(BatchMessage):
    """Payload of a PUSH_SELECTED record: tokens selected from the device table."""

    tokens: List[str] = Field(..., min_length=1)

    @field_validator('tokens')
    @classmethod
    def validate_tokens(cls, v: List[str]) -> List[str]:
        """Tokens must be non-empty strings."""
        if any(not token or not token.strip() for token in v):
            raise ValueError("tokens must be non-empty strings")
        return v


class BatchCompletedMessage(BatchMessage):
    """Payload of a BATCH_COMPLETED record."""


class PushMessage(BaseModel):
    """Message handed to the push provider for every token."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str = ""
    data: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_notification(cls, notification: AlertNotification) -> "PushMessage":
        """Build the provider message for an alert notification."""
        return cls(
            title=notification.headline,
            body=next(iter(notification.i18n_title.values()), ""),
            data={
                "alertId": notification.id,
                "provider": notification.provider,
                "severity": notification.severity,
            },
        )
