"""
Module: test_device_strategies.py
Description: Unit tests for device registration and deletion strategies.
"""

import pytest

from fanout.errors import DownstreamError, RecordValidationError
from fanout.models.notification import Platform
from fanout.models.record import QueueRecord
from fanout.strategies.devices import DeleteDeviceStrategy, RegisterDeviceStrategy


@pytest.fixture
def register_record(sqs_record):
    return QueueRecord.from_sqs(sqs_record("m-1", "REGISTER_DEVICE", {
        "deviceId": "device-1",
        "platform": "APNS",
        "token": {"token": "apns-token-1"},
        "version": 17,
    }))


class TestRegisterDeviceStrategy:
    """Test cases for RegisterDeviceStrategy."""

    @pytest.mark.asyncio
    async def test_register(self, device_store, fixed_clock, register_record):
        """Test a registration writes the device row."""
        result = await RegisterDeviceStrategy(device_store, clock=fixed_clock).execute(register_record)

        assert result.succeeded
        row = device_store.rows["device-1"]
        assert row.platform is Platform.APNS
        assert row.push_token == "apns-token-1"
        assert row.os_version_code == "17"
        assert row.created == row.modified == fixed_clock()

    @pytest.mark.asyncio
    async def test_register_is_idempotent(self, device_store, fixed_clock, register_record):
        """Test running the same registration twice leaves the same state."""
        strategy = RegisterDeviceStrategy(device_store, clock=fixed_clock)

        await strategy.execute(register_record)
        first = dict(device_store.rows)
        result = await strategy.execute(register_record)

        assert result.succeeded
        assert device_store.rows == first

    @pytest.mark.asyncio
    async def test_invalid_payload(self, device_store, sqs_record):
        """Test a registration without token fails with a validation error."""
        record = QueueRecord.from_sqs(sqs_record("m-1", "REGISTER_DEVICE", {"deviceId": "d", "platform": "fcm"}))

        result = await RegisterDeviceStrategy(device_store).execute(record)

        assert not result.succeeded
        assert isinstance(result.error, RecordValidationError)
        assert result.error.record_id == "m-1"
        assert device_store.rows == {}

    @pytest.mark.asyncio
    async def test_store_failure(self, device_store, register_record):
        """Test a store failure surfaces as a failed result."""
        device_store.fail_for.add("device-1")

        result = await RegisterDeviceStrategy(device_store).execute(register_record)

        assert not result.succeeded
        assert isinstance(result.error, DownstreamError)
        assert result.error.record_id == "m-1"


class TestDeleteDeviceStrategy:
    """Test cases for DeleteDeviceStrategy."""

    @pytest.mark.asyncio
    async def test_delete_existing(self, device_store, fixed_clock, register_record, sqs_record):
        await RegisterDeviceStrategy(device_store, clock=fixed_clock).execute(register_record)
        record = QueueRecord.from_sqs(sqs_record("m-2", "DELETE_DEVICE", {"deviceId": "device-1"}))

        result = await DeleteDeviceStrategy(device_store).execute(record)

        assert result.succeeded
        assert device_store.rows == {}

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, device_store, sqs_record):
        """Test deleting an unknown device succeeds, also when repeated."""
        record = QueueRecord.from_sqs(sqs_record("m-2", "DELETE_DEVICE", {"deviceId": "device-1"}))
        strategy = DeleteDeviceStrategy(device_store)

        assert (await strategy.execute(record)).succeeded
        assert (await strategy.execute(record)).succeeded

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_downstream_error(self, sqs_record):
        """Test exceptions outside the error hierarchy are reported, not raised."""
        class BrokenStore:
            async def delete_device(self, device_id):
                raise RuntimeError("connection reset")

        record = QueueRecord.from_sqs(sqs_record("m-3", "DELETE_DEVICE", {"deviceId": "device-1"}))

        result = await DeleteDeviceStrategy(BrokenStore()).execute(record)

        assert not result.succeeded
        assert isinstance(result.error, DownstreamError)
        assert result.error.message == "connection reset"
