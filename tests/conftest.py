"""
Module: conftest.py
Description: Shared pytest fixtures for queue client tests.

Provides an in-memory QueueBackend that records every call, holds
messages as visible or in flight, and can be told to fail on demand,
plus settings and queue fixtures built on top of it.
"""

import asyncio
import hashlib
import uuid
from collections import deque
from typing import Dict, List, Optional

import pytest

from simple_sqs.backend.base import QueueBackend
from simple_sqs.config.settings import QueueSettings
from simple_sqs.errors import InvalidReceipt
from simple_sqs.models.message import (
    BatchEntry,
    BatchEntryResult,
    QueueCounts,
    ReceivedMessage,
    SendResult,
)
from simple_sqs.sqs_queue.queue import Queue

QUEUE_NAME = "test-queue"
QUEUE_URL = f"https://sqs.us-east-1.amazonaws.com/123456789012/{QUEUE_NAME}"


def md5(body: str) -> str:
    return hashlib.md5(body.encode("utf-8")).hexdigest()


class FakeBackend(QueueBackend):
    """
    In-memory backend recording calls as (operation, details) tuples.

    Failure knobs:
        resolve_event: resolution waits on this event when set
        resolve_error: raised by resolve_endpoint
        batch_errors: {call_number: exception} for send_message_batch (1-based)
        rejected_bodies: bodies reported as failed entries in a batch
        receive_error / delete_error: raised by receive/delete when set
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.visible = deque()
        self.in_flight: Dict[str, dict] = {}
        self.resolve_event: Optional[asyncio.Event] = None
        self.resolve_error: Optional[Exception] = None
        self.batch_errors: Dict[int, Exception] = {}
        self.rejected_bodies = set()
        self.receive_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None

    def calls_to(self, operation: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == operation]

    def _enqueue(self, body: str) -> dict:
        record = {"id": str(uuid.uuid4()), "body": body, "digest": md5(body)}
        self.visible.append(record)
        return record

    async def resolve_endpoint(self, queue_name: str) -> str:
        self.calls.append(("resolve_endpoint", queue_name))
        if self.resolve_event is not None:
            await self.resolve_event.wait()
        if self.resolve_error is not None:
            raise self.resolve_error
        return f"https://sqs.us-east-1.amazonaws.com/123456789012/{queue_name}"

    async def send_message(self, endpoint, body, delay_seconds=None) -> SendResult:
        self.calls.append(("send_message", {"endpoint": endpoint, "body": body, "delay_seconds": delay_seconds}))
        record = self._enqueue(body)
        return SendResult(id=record["id"], digest=record["digest"])

    async def send_message_batch(self, endpoint, entries: List[BatchEntry]) -> List[BatchEntryResult]:
        assert 1 <= len(entries) <= 10
        self.calls.append(("send_message_batch", {"endpoint": endpoint, "entries": list(entries)}))
        call_number = len(self.calls_to("send_message_batch"))
        if call_number in self.batch_errors:
            raise self.batch_errors[call_number]

        results = []
        for entry in entries:
            if entry.body in self.rejected_bodies:
                results.append(BatchEntryResult(
                    client_token=entry.client_token,
                    error_code="InvalidMessageContents",
                    error_message="rejected by test"
                ))
                continue
            record = self._enqueue(entry.body)
            results.append(BatchEntryResult(client_token=entry.client_token, id=record["id"], digest=record["digest"]))

        # Per-entry results are matched by token, not position
        return list(reversed(results))

    async def receive_messages(self, endpoint, max_count, wait_seconds) -> List[ReceivedMessage]:
        assert 1 <= max_count <= 10
        assert 0 <= wait_seconds <= 20
        self.calls.append(("receive_messages", {"endpoint": endpoint, "max_count": max_count, "wait_seconds": wait_seconds}))
        if self.receive_error is not None:
            raise self.receive_error

        received = []
        while self.visible and len(received) < max_count:
            record = self.visible.popleft()
            token = f"receipt-{uuid.uuid4().hex}"
            self.in_flight[token] = record
            received.append(ReceivedMessage(
                id=record["id"],
                body=record["body"],
                digest=record["digest"],
                receipt_token=token
            ))
        return received

    async def delete_message(self, endpoint, receipt_token) -> None:
        self.calls.append(("delete_message", {"endpoint": endpoint, "receipt_token": receipt_token}))
        if self.delete_error is not None:
            raise self.delete_error
        if receipt_token not in self.in_flight:
            raise InvalidReceipt("The receipt handle has expired", code="ReceiptHandleIsInvalid")
        del self.in_flight[receipt_token]

    async def purge_queue(self, endpoint) -> None:
        self.calls.append(("purge_queue", {"endpoint": endpoint}))
        self.visible.clear()
        self.in_flight.clear()

    async def get_approximate_counts(self, endpoint) -> QueueCounts:
        self.calls.append(("get_approximate_counts", {"endpoint": endpoint}))
        return QueueCounts(visible=len(self.visible), in_flight=len(self.in_flight))


@pytest.fixture
def test_settings():
    """
    Provide queue settings for tests.

    Disables .env loading so local files cannot leak into tests.
    """
    return QueueSettings(
        _env_file=None,
        queue_name=QUEUE_NAME,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_region="us-east-1"
    )


@pytest.fixture
def fake_backend():
    """Provide a fresh in-memory backend."""
    return FakeBackend()


@pytest.fixture
def queue(test_settings, fake_backend):
    """
    Provide a Queue bound to the in-memory backend.

    Built outside the event loop, so resolution starts on the first
    operation of the test.
    """
    return Queue(settings=test_settings, backend=fake_backend)


@pytest.fixture
def queue_url():
    """URL the in-memory backend resolves the test queue to."""
    return QUEUE_URL
