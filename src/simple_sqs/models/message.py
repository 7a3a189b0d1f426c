"""
Module: message.py
Description: Message data models for the queue client.

Defines the caller-facing Message model and the plain records the
backend exchanges with the client. Messages are immutable once built
and hold no reference to the queue they came from.

Key Components:
- Message: Payload plus backend identity, with receipt token once retrieved
- SendResult / BatchEntry / BatchEntryResult: send-side backend records
- ReceivedMessage: raw retrieval record (wire body not yet decoded)
- QueueCounts: approximate visible and in-flight message counts

Dependencies: pydantic, typing
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """
    One unit of payload moving through the queue.

    Attributes:
        id: Backend-assigned message identifier
        body: Caller payload (decoded from JSON for retrieved messages)
        digest: MD5 digest of the wire body as reported by the backend
        receipt_token: Receipt handle, present only on retrieved messages
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Backend-assigned message identifier")
    body: Any = Field(default=None, description="Message payload")
    digest: str = Field(..., description="MD5 digest of the message body")
    receipt_token: Optional[str] = Field(
        default=None,
        description="Receipt handle required to remove a retrieved message"
    )

    @property
    def is_retrieved(self) -> bool:
        """Whether this message came from a retrieval and can be removed."""
        return self.receipt_token is not None


class SendResult(BaseModel):
    """Backend response to a single send."""

    id: str
    digest: str


class BatchEntry(BaseModel):
    """One entry of a batched send; client_token is unique within the batch."""

    client_token: str
    body: str
    delay_seconds: Optional[int] = None


class BatchEntryResult(BaseModel):
    """
    Per-entry outcome of a batched send.

    Successful entries carry id and digest; failed entries carry
    error_code and error_message instead.
    """

    client_token: str
    id: Optional[str] = None
    digest: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_code is None and self.id is not None


class ReceivedMessage(BaseModel):
    """Raw retrieval record with the body still in wire form."""

    id: str
    body: str
    digest: str
    receipt_token: str


class QueueCounts(BaseModel):
    """Approximate message counts reported by the backend."""

    visible: int = Field(default=0, ge=0)
    in_flight: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.visible + self.in_flight
