"""
Package: simple_sqs
Description: Simple asyncio client for Amazon SQS queues.

Exposes add/peek/remove/poll/clear/size operations and a pull-based
stream over one queue, with batching, deferred start-up and
backpressure handled by the client.
"""

from .config.settings import QueueSettings
from .errors import (
    QueueError,
    InvalidArgument,
    QueueNotReadyError,
    BackendError,
    BackendUnavailable,
    InvalidReceipt,
    PartialBatchFailure,
    BatchItemFailure,
)
from .models import Message, AddOptions, PeekOptions, PeekOneOptions
from .backend import QueueBackend, SQSBackend
from .sqs_queue import Queue, QueueStream
from .utils.logger import configure_logging
from .utils.retry import backend_retry, call_with_retry

__version__ = "0.1.0"

__all__ = [
    "Queue",
    "QueueStream",
    "QueueSettings",
    "Message",
    "AddOptions",
    "PeekOptions",
    "PeekOneOptions",
    "QueueBackend",
    "SQSBackend",
    "QueueError",
    "InvalidArgument",
    "QueueNotReadyError",
    "BackendError",
    "BackendUnavailable",
    "InvalidReceipt",
    "PartialBatchFailure",
    "BatchItemFailure",
    "configure_logging",
    "backend_retry",
    "call_with_retry",
]
