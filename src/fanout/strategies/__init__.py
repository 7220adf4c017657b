"""
Package: strategies
Description: Operation strategies selected by a record's operation tag.

- devices: REGISTER_DEVICE, DELETE_DEVICE
- push: PUSH_ALL, PUSH_SELECTED
- batch_protocol: BATCH_COMPLETED
"""

from .base import Strategy
from .batch_protocol import LogBatchCompletedStrategy
from .devices import DeleteDeviceStrategy, RegisterDeviceStrategy
from .push import PushToAllStrategy, PushToSelectedStrategy, SqsCompletionReporter

__all__ = [
    "DeleteDeviceStrategy",
    "LogBatchCompletedStrategy",
    "PushToAllStrategy",
    "PushToSelectedStrategy",
    "RegisterDeviceStrategy",
    "SqsCompletionReporter",
    "Strategy",
]
