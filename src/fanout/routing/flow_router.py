"""
Module: flow_router.py
Description: Flow-control routing of notifications to downstream queues.

Routing is a pure lookup over the deployment's configuration. The mode
is fixed per deployment and decided once per event at enqueue time.

Key Components:
- PlatformQueues: 'all' and 'selected' queue endpoints of one platform
- RoutingConfig: Flow-control mode plus queues per platform
- QueueDestination: One routed queue
- FlowRouter.route(): Destinations for an event
"""

from typing import Dict, FrozenSet, Iterable, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from fanout.errors import ConfigurationError
from fanout.models.notification import FlowControl, Platform


class RoutableEvent(Protocol):
    """Anything that names the platforms it must reach."""

    @property
    def target_platforms(self) -> Iterable[Platform]:
        ...


class PlatformQueues(BaseModel):
    """Queue endpoints of one platform."""

    model_config = ConfigDict(frozen=True)

    all: Optional[str] = None
    selected: Optional[str] = None

    def for_mode(self, mode: FlowControl) -> Optional[str]:
        return self.all if mode is FlowControl.ALL else self.selected


class RoutingConfig(BaseModel):
    """Routing configuration, validated once at load time."""

    model_config = ConfigDict(frozen=True)

    flow_control: FlowControl
    queues: Dict[Platform, PlatformQueues]


class QueueDestination(BaseModel):
    """A queue an event is published to."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    mode: FlowControl
    queue_url: str


class FlowRouter:
    """Resolves the downstream queues of an event."""

    def route(self, config: RoutingConfig, event: RoutableEvent) -> FrozenSet[QueueDestination]:
        """
        Destinations of an event under the configured flow-control mode.

        ALL yields the all-recipients queue of every platform the event
        targets; SELECTED yields the selected queue of each targeted
        platform.

        Raises:
            ConfigurationError: If a targeted platform has no queue for the mode
        """
        mode = config.flow_control
        destinations = set()

        for platform in event.target_platforms:
            queues = config.queues.get(platform)
            queue_url = queues.for_mode(mode) if queues else None
            if not queue_url:
                raise ConfigurationError(
                    f"No '{mode.value}' queue configured for platform '{platform.value}'"
                )
            destinations.add(QueueDestination(platform=platform, mode=mode, queue_url=queue_url))

        return frozenset(destinations)
