"""
Module: conftest.py
Description: Shared pytest fixtures for fan-out handler tests.

Provides fake collaborators (device store, chunk store, push sender),
SQS event record factories, sample alert notifications and test
settings. AWS services are mocked with moto in the tests that need
them; the fixtures here only make sure no real credentials are used.
"""

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from fanout.config.settings import Settings
from fanout.delivery.push import PushOutcome
from fanout.errors import DownstreamError
from fanout.models.notification import AlertNotification
from fanout.models.push import PushMessage
from fanout.storage.chunk_store import ChunkListing

FIXED_NOW = datetime(2026, 10, 18, 10, 1, 30, tzinfo=timezone.utc)


class FakeDeviceStore:
    """In-memory device store; devices listed in fail_for raise DownstreamError."""

    def __init__(self, fail_for=()):
        self.rows = {}
        self.fail_for = set(fail_for)
        self.calls = []

    async def upsert_device(self, row):
        self.calls.append(('upsert', row.device_id))
        if row.device_id in self.fail_for:
            raise DownstreamError("database unavailable")
        self.rows[row.device_id] = row

    async def delete_device(self, device_id):
        self.calls.append(('delete', device_id))
        if device_id in self.fail_for:
            raise DownstreamError("database unavailable")
        return self.rows.pop(device_id, None) is not None


class FakeChunkStore:
    """In-memory chunk store listing keys in pages of page_size."""

    def __init__(self, bucket_name: str = "test-chunks", page_size: int = 1000):
        self.bucket_name = bucket_name
        self.page_size = page_size
        self.chunks: Dict[str, List[str]] = {}

    async def put_tokens(self, key: str, tokens: List[str]) -> None:
        self.chunks[key] = list(tokens)

    async def get_tokens(self, key: str) -> List[str]:
        if key not in self.chunks:
            raise DownstreamError(f"Failed to read chunk '{key}'")
        return list(self.chunks[key])

    async def list_keys(self, prefix: str, continuation_token: Optional[str] = None) -> ChunkListing:
        keys = sorted(k for k in self.chunks if k.startswith(prefix))
        start = int(continuation_token) if continuation_token else 0
        end = start + self.page_size
        return ChunkListing(
            keys=keys[start:end],
            continuation_token=str(end) if end < len(keys) else None,
        )


class FakePushSender:
    """Push sender answering with preset per-token outcomes (default DELIVERED)."""

    def __init__(self, outcomes: Optional[Dict[str, PushOutcome]] = None):
        self.outcomes = outcomes or {}
        self.sent: List[str] = []
        self.bulk_calls: List[List[str]] = []
        self.messages: List[PushMessage] = []

    async def send(self, token: str, message: PushMessage) -> PushOutcome:
        self.sent.append(token)
        self.messages.append(message)
        return self.outcomes.get(token, PushOutcome.DELIVERED)

    async def send_bulk(self, tokens: List[str], message: PushMessage) -> List[PushOutcome]:
        self.bulk_calls.append(list(tokens))
        self.messages.append(message)
        return [self.outcomes.get(token, PushOutcome.DELIVERED) for token in tokens]


class FakeLambdaContext:
    """Minimal Lambda context."""

    aws_request_id = "req-123"
    function_name = "fanout-test"
    function_version = "$LATEST"
    memory_limit_in_mb = 256

    def __init__(self, remaining_ms: int = 30000):
        self.remaining_ms = remaining_ms

    def get_remaining_time_in_millis(self) -> int:
        return self.remaining_ms


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Queues for both platforms and modes, a chunk bucket and push
    gateways are configured; no .env file is read.
    """
    return Settings(
        _env_file=None,
        log_level="DEBUG",
        aws_region="us-east-1",
        stage="test",
        flow_control="all",
        sqs_queue_url_all_fcm="https://sqs.us-east-1.amazonaws.com/123456789012/all-fcm",
        sqs_queue_url_all_apns="https://sqs.us-east-1.amazonaws.com/123456789012/all-apns",
        sqs_queue_url_selected_fcm="https://sqs.us-east-1.amazonaws.com/123456789012/selected-fcm",
        sqs_queue_url_selected_apns="https://sqs.us-east-1.amazonaws.com/123456789012/selected-apns",
        sqs_queue_url_batch_protocol="https://sqs.us-east-1.amazonaws.com/123456789012/batch-protocol",
        chunk_bucket_name="test-chunks",
        batch_table_name="test-batch-protocol",
        push_gateway_url_fcm="https://push.example.com/fcm",
        push_gateway_url_apns="https://push.example.com/apns",
    )


@pytest.fixture
def notification_data():
    """Alert notification as published by the alert handler."""
    return {
        "id": "DE-DWD-PVW-0001",
        "provider": "dwd",
        "severity": "Severe",
        "platform": "fcm",
        "received": "2026-10-18T10:00:00+00:00",
        "hash": "5d41402abc4b2a76b9719d911017c592",
        "regionKeys": ["091620000000", "091840000000"],
        "payload": {"data": {"headline": "Amtliche UNWETTERWARNUNG vor ORKANBOEEN"}},
        "i18nTitle": {"de": "Unwetterwarnung"},
    }


@pytest.fixture
def notification(notification_data):
    """Parsed alert notification."""
    return AlertNotification.model_validate(notification_data)


@pytest.fixture
def sqs_record():
    """
    Factory for SQS event records.

    Builds an operation envelope from tag and payload unless a raw body
    is given.
    """
    def make(message_id, tag=None, payload=None, body=None):
        if body is None:
            body = json.dumps({"operationTag": tag, "payload": payload})
        record = {
            "messageId": message_id,
            "receiptHandle": f"rh-{message_id}",
            "body": body,
            "eventSource": "aws:sqs",
        }
        if message_id is None:
            del record["messageId"]
        return record

    return make


@pytest.fixture
def device_store():
    return FakeDeviceStore()


@pytest.fixture
def chunk_store():
    return FakeChunkStore()


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture
def fixed_clock():
    """Clock always returning FIXED_NOW."""
    return lambda: FIXED_NOW
