"""
Package: config
Description: Configuration for the queue client.
"""

from .settings import QueueSettings, MAX_WAIT_SECONDS

__all__ = [
    "QueueSettings",
    "MAX_WAIT_SECONDS",
]
