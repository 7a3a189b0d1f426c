"""
Package: backend
Description: Raw service backends for the queue client.

Provides the abstract QueueBackend interface and the aioboto3-based
SQS implementation.
"""

from .base import QueueBackend
from .sqs import SQSBackend

__all__ = [
    "QueueBackend",
    "SQSBackend",
]
