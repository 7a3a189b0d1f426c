"""
Module: stream.py
Description: Pull-based async stream over a queue.

Each step polls exactly one message and yields its body. Nothing is
polled until the consumer asks for the next item, so a slow consumer
never has more than one message in hand.
"""

from typing import TYPE_CHECKING, Any

from ..models.options import PeekOneOptions
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from .queue import Queue

logger = get_logger(__name__)


class QueueStream:
    """
    Async iterator yielding message bodies via Queue.poll_one().

    The stream ends (StopAsyncIteration) the first time a poll returns
    no message: the queue was empty for one wait window, which does not
    mean it will stay empty. A backend error is raised from the pending
    step and closes the stream.

    Attributes:
        consumed: Number of bodies yielded so far
    """

    def __init__(self, queue: "Queue", options: PeekOneOptions):
        self._queue = queue
        self._options = options
        self._closed = False
        self._pulling = False
        self.consumed = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "QueueStream":
        return self

    async def __anext__(self) -> Any:
        if self._closed:
            raise StopAsyncIteration
        if self._pulling:
            raise RuntimeError("QueueStream allows one pending read at a time")

        self._pulling = True
        try:
            message = await self._queue.poll_one(self._options)
        except Exception as e:
            self._closed = True
            logger.error(
                "Queue stream failed",
                queue_name=self._queue.name,
                consumed=self.consumed,
                error=str(e)
            )
            raise
        finally:
            self._pulling = False

        if message is None:
            self._closed = True
            logger.debug("Queue stream drained", queue_name=self._queue.name, consumed=self.consumed)
            raise StopAsyncIteration

        self.consumed += 1
        return message.body

    async def aclose(self) -> None:
        """Stop the stream; later reads end immediately."""
        self._closed = True

    async def __aenter__(self) -> "QueueStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
