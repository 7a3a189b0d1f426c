"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models used by the queue client:
- Message: caller-facing message model
- Backend records exchanged with QueueBackend implementations
- Option models validated at each operation's boundary

All models are exported here for convenient importing.
"""

from .message import (
    Message,
    SendResult,
    BatchEntry,
    BatchEntryResult,
    ReceivedMessage,
    QueueCounts,
)
from .options import AddOptions, PeekOptions, PeekOneOptions, MAX_DELAY_SECONDS, MAX_PEEK_LIMIT

__all__ = [
    "Message",
    "SendResult",
    "BatchEntry",
    "BatchEntryResult",
    "ReceivedMessage",
    "QueueCounts",
    "AddOptions",
    "PeekOptions",
    "PeekOneOptions",
    "MAX_DELAY_SECONDS",
    "MAX_PEEK_LIMIT",
]
