"""
Package: routing
Description: Flow-control routing of notifications to downstream queues.
"""

from .flow_router import FlowRouter, PlatformQueues, QueueDestination, RoutingConfig

__all__ = [
    "FlowRouter",
    "PlatformQueues",
    "QueueDestination",
    "RoutingConfig",
]
