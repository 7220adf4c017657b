"""
Module: devices.py
Description: Device registration and deletion strategies.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from fanout.models.device import DeviceDeletion, DeviceRegistration, DeviceRow
from fanout.models.record import OperationTag, QueueRecord
from fanout.storage.devices import DeviceStore
from fanout.strategies.base import Strategy
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegisterDeviceStrategy(Strategy[DeviceRegistration]):
    """Upserts the device row; replaying a registration rewrites the same row."""

    tag = OperationTag.REGISTER_DEVICE
    payload_model = DeviceRegistration

    def __init__(self, store: DeviceStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or _utcnow

    async def perform(self, payload: DeviceRegistration, record: QueueRecord) -> None:
        logger.debug(
            "Handling device registration",
            record_id=record.record_id,
            device_id=payload.device_id,
            platform=payload.platform.value
        )

        await self.store.upsert_device(DeviceRow.from_registration(payload, self.clock()))

        logger.info("Handled device registration", record_id=record.record_id, device_id=payload.device_id)


class DeleteDeviceStrategy(Strategy[DeviceDeletion]):
    """Deletes the device row if it exists; an unknown device is not an error."""

    tag = OperationTag.DELETE_DEVICE
    payload_model = DeviceDeletion

    def __init__(self, store: DeviceStore):
        self.store = store

    async def perform(self, payload: DeviceDeletion, record: QueueRecord) -> None:
        logger.debug("Handling device deletion", record_id=record.record_id, device_id=payload.device_id)

        existed = await self.store.delete_device(payload.device_id)

        logger.info(
            "Handled device deletion",
            record_id=record.record_id,
            device_id=payload.device_id,
            existed=existed
        )
