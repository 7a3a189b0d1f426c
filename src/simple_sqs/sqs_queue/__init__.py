"""
Package: sqs_queue
Description: Queue operations layered over a raw backend.

Provides the Queue client, the readiness gate that defers operations
until the queue URL is resolved, and the pull-based stream adapter.
"""

from .gate import ReadinessGate
from .stream import QueueStream
from .queue import Queue

__all__ = [
    "Queue",
    "QueueStream",
    "ReadinessGate",
]
