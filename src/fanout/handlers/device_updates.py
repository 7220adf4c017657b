"""
Module: device_updates.py
Description: SQS Lambda handler for device registrations and deletions.
"""

from typing import Any, Dict, Optional

from fanout.config.settings import Settings, get_settings
from fanout.dispatch.dispatcher import BatchDispatcher
from fanout.dispatch.registry import StrategyRegistry
from fanout.handlers.runtime import build_query_runner, run_batch
from fanout.storage.devices import SqlDeviceStore
from fanout.storage.pool import LazyResource
from fanout.strategies.devices import DeleteDeviceStrategy, RegisterDeviceStrategy


def build_dispatcher(settings: Optional[Settings] = None) -> BatchDispatcher:
    """Dispatcher for REGISTER_DEVICE and DELETE_DEVICE records."""
    settings = settings or get_settings()

    runner = build_query_runner(settings, application_name=f"{settings.stage}-device-updates")
    store = SqlDeviceStore(runner, settings.device_register_query, settings.device_delete_query)

    return BatchDispatcher(StrategyRegistry([
        RegisterDeviceStrategy(store),
        DeleteDeviceStrategy(store),
    ]))


dispatcher = LazyResource(build_dispatcher, name="device_updates_dispatcher")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda handler for the device update queue."""
    return run_batch(event, context, dispatcher)
