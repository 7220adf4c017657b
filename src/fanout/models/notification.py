"""
Module: notification.py
Description: Alert notification models.

Defines the alert notification produced upstream by the alert handler
and carried through every fan-out queue, plus the closed enumerations
for push platforms and flow-control modes.

Key Components:
- Platform: Push platform enum (fcm, apns)
- FlowControl: Recipient selection mode enum (all, selected)
- AlertNotification: Alert plus delivery target

Dependencies: pydantic, datetime, typing, enum
Author: Fan-out Platform Team
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Platform(str, Enum):
    """Push platform a notification is delivered through."""

    FCM = "fcm"
    APNS = "apns"

    @classmethod
    def parse(cls, value: Any) -> "Platform":
        """Parse a platform name case-insensitively."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError("platform must be a string")
        return cls(value.strip().lower())


class FlowControl(str, Enum):
    """
    Recipient selection mode.

    ALL fans out to every cached device chunk, SELECTED queries the
    devices whose preferences and regions match the alert.
    """

    ALL = "all"
    SELECTED = "selected"

    @classmethod
    def parse(cls, value: Any) -> "FlowControl":
        """Parse a flow-control mode case-insensitively."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError("flow control must be a string")
        return cls(value.strip().lower())


class AlertNotification(BaseModel):
    """
    Alert notification to deliver on one platform.

    Attributes:
        id: Alert identifier
        provider: Alert provider (e.g. 'dwd', 'mowas')
        severity: Free-text severity label as sent by the provider
        platform: Platform to send notifications through
        received: Timestamp when the alert was received
        region_keys: Region keys used to select recipients
        payload: Provider payload (headline, area, ...)
        i18n_title: Localised titles keyed by language
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    id: str = Field(..., min_length=1, description="Alert identifier")
    provider: str = Field(..., min_length=1, description="Alert provider")
    severity: str = Field(default="", description="Severity label")
    platform: Platform = Field(..., description="Target push platform")
    received: Optional[datetime] = Field(default=None, description="Receive timestamp")
    hash: Optional[str] = Field(default=None, description="Hash of the received file")
    region_keys: List[str] = Field(
        default_factory=list,
        alias="regionKeys",
        description="Region keys used for flow control SELECTED"
    )
    payload: Dict[str, Any] = Field(default_factory=dict, description="Alert payload")
    i18n_title: Dict[str, str] = Field(
        default_factory=dict,
        alias="i18nTitle",
        description="Localised titles"
    )

    @field_validator('platform', mode='before')
    @classmethod
    def validate_platform(cls, v: Any) -> Platform:
        """Accept platform names in any case."""
        return Platform.parse(v)

    @field_validator('provider')
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Provider is used as a storage path segment."""
        if "/" in v:
            raise ValueError("provider must not contain '/'")
        return v

    @property
    def alert_key(self) -> str:
        """Key of this alert on its platform, used by the batch protocol."""
        return f"{self.id}:{self.platform.value}"

    @property
    def target_platforms(self) -> FrozenSet[Platform]:
        """Platforms this notification must reach."""
        return frozenset({self.platform})

    @property
    def headline(self) -> str:
        """Headline from the provider payload, falling back to the alert id."""
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        if isinstance(data, dict) and data.get("headline"):
            return str(data["headline"])
        return self.id

    def to_message(self) -> Dict[str, Any]:
        """Serialise for a queue message body."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
