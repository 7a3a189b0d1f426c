"""
Module: backend/base.py
Description: Abstract backend interface consumed by the queue client.

A backend performs the raw service calls against one remote queue
service. The queue client decides when and how often these are made;
implementations should not batch, defer or retry on their own.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.message import (
    BatchEntry,
    BatchEntryResult,
    QueueCounts,
    ReceivedMessage,
    SendResult,
)


class QueueBackend(ABC):
    """
    Queue backend abstract interface.

    Implementations raise BackendUnavailable for resolution and transport
    failures, InvalidReceipt for rejected receipt tokens and BackendError
    for any other service-side rejection.
    """

    @abstractmethod
    async def resolve_endpoint(self, queue_name: str) -> str:
        """Resolve the endpoint (queue URL) for a queue name."""

    @abstractmethod
    async def send_message(
        self,
        endpoint: str,
        body: str,
        delay_seconds: Optional[int] = None
    ) -> SendResult:
        """Send one message body."""

    @abstractmethod
    async def send_message_batch(self, endpoint: str, entries: List[BatchEntry]) -> List[BatchEntryResult]:
        """
        Send up to 10 entries in one call.

        Returns one result per entry, matched by client_token. A failure
        of the whole call is raised instead.
        """

    @abstractmethod
    async def receive_messages(self, endpoint: str, max_count: int, wait_seconds: int) -> List[ReceivedMessage]:
        """Receive up to max_count (1-10) messages, waiting up to wait_seconds (0-20)."""

    @abstractmethod
    async def delete_message(self, endpoint: str, receipt_token: str) -> None:
        """Delete the in-flight message identified by receipt_token."""

    @abstractmethod
    async def purge_queue(self, endpoint: str) -> None:
        """Delete every message in the queue."""

    @abstractmethod
    async def get_approximate_counts(self, endpoint: str) -> QueueCounts:
        """Report approximate visible and in-flight message counts."""
