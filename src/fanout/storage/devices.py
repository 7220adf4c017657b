"""
Module: devices.py
Description: Device table operations.

Key Components:
- DeviceStore: Protocol used by the device strategies
- SqlDeviceStore: Relational implementation over a QueryRunner

Registration is an upsert and deletion is delete-if-exists, so both can
be replayed for the same record.
"""

from typing import Protocol

from fanout.models.device import DeviceRow
from fanout.storage.pool import QueryRunner
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


class DeviceStore(Protocol):
    """Device persistence."""

    async def upsert_device(self, row: DeviceRow) -> None:
        ...

    async def delete_device(self, device_id: str) -> bool:
        ...


class SqlDeviceStore:
    """
    Device store on the relational database.

    The upsert statement takes twelve positional parameters in the order
    of the device table columns (see DEFAULT_REGISTER_DEVICE_QUERY); the
    delete statement takes the device id.
    """

    def __init__(self, runner: QueryRunner, register_query: str, delete_query: str):
        if not register_query or not delete_query:
            raise ValueError("register_query and delete_query must be non-empty")

        self.runner = runner
        self.register_query = register_query
        self.delete_query = delete_query

    async def upsert_device(self, row: DeviceRow) -> None:
        params = (
            row.device_id,
            row.platform.value,
            row.push_token,
            row.created.isoformat(),
            row.modified.isoformat(),
            row.os_version_code,
            row.preferences_ap1,
            row.preferences_ap2,
            row.preferences_ap3,
            row.preferences_ap4,
            row.preferences_mylocation,
            row.regions,
        )
        await self.runner.query(self.register_query, params)

        logger.debug("Device registered", device_id=row.device_id, platform=row.platform.value)

    async def delete_device(self, device_id: str) -> bool:
        """
        Delete a device if it exists.

        Returns:
            True if a row was deleted, False if the device was unknown
        """
        result = await self.runner.query(self.delete_query, (device_id,))
        deleted = result.rowcount > 0

        logger.debug("Device deleted", device_id=device_id, existed=deleted)

        return deleted
