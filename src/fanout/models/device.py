"""
Module: device.py
Description: Device update payloads.

Payload models for the REGISTER_DEVICE and DELETE_DEVICE operations
sent by the device registration API, and the row written for a
registered device.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fanout.models.notification import Platform


class DevicePayload(BaseModel):
    """Fields shared by every device update."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    device_id: str = Field(..., min_length=1, alias="deviceId")


class PushToken(BaseModel):
    """Push token issued by the platform for a device."""

    token: str = Field(..., min_length=1)


class DeviceRegistration(DevicePayload):
    """Payload of a REGISTER_DEVICE record."""

    platform: Platform
    token: PushToken
    version: Optional[str] = Field(default=None, description="OS version code")

    @field_validator('platform', mode='before')
    @classmethod
    def validate_platform(cls, v: Any) -> Platform:
        """Accept platform names in any case."""
        return Platform.parse(v)

    @field_validator('version', mode='before')
    @classmethod
    def coerce_version(cls, v: Any) -> Optional[str]:
        """Version codes arrive as numbers from some clients."""
        if v is None:
            return None
        return str(v)


class DeviceDeletion(DevicePayload):
    """Payload of a DELETE_DEVICE record."""


class DeviceRow(BaseModel):
    """
    Device row as written to the device table.

    Preferences start at their defaults on registration; they are
    maintained by the preference API, not by this pipeline.
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    platform: Platform
    push_token: str
    created: datetime
    modified: datetime
    os_version_code: Optional[str] = None
    preferences_ap1: int = 0
    preferences_ap2: int = 0
    preferences_ap3: int = 0
    preferences_ap4: int = 0
    preferences_mylocation: bool = False
    regions: Optional[str] = None

    @classmethod
    def from_registration(cls, registration: DeviceRegistration, now: datetime) -> "DeviceRow":
        """Build the row for a registration received at `now`."""
        return cls(
            device_id=registration.device_id,
            platform=registration.platform,
            push_token=registration.token.token,
            created=now,
            modified=now,
            os_version_code=registration.version,
        )
