"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains all data models used by the fan-out handlers:
- AlertNotification: Alert plus delivery platform
- QueueRecord: Parsed queue record envelope
- DeviceRegistration / DeviceDeletion: Device update payloads
- AllChunkMessage / SelectedTokensMessage: Push fan-out payloads
- BatchResponse: Failed record identifiers for the queue system

All models are exported here for convenient importing.
"""

from .device import DeviceDeletion, DeviceRegistration, DeviceRow
from .notification import AlertNotification, FlowControl, Platform
from .push import AllChunkMessage, BatchCompletedMessage, PushMessage, SelectedTokensMessage
from .record import OperationTag, QueueRecord
from .result import BatchItemResult, BatchResponse, StrategyResult

__all__ = [
    "AlertNotification",
    "AllChunkMessage",
    "BatchCompletedMessage",
    "BatchItemResult",
    "BatchResponse",
    "DeviceDeletion",
    "DeviceRegistration",
    "DeviceRow",
    "FlowControl",
    "OperationTag",
    "Platform",
    "PushMessage",
    "QueueRecord",
    "SelectedTokensMessage",
    "StrategyResult",
]
