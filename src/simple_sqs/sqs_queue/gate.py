"""
Module: gate.py
Description: One-time readiness gate for queue operations.

Resolves the queue endpoint exactly once and holds every operation
until it is known. Waiters resume in the order they arrived. If
resolution fails, every pending and later waiter gets
BackendUnavailable; the gate never resets and never waits forever.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from ..errors import BackendUnavailable, QueueNotReadyError
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class ReadinessGate:
    """
    Gate holding operations until the endpoint is resolved.

    Resolution is scheduled at construction when an event loop is
    running, otherwise on the first wait(). Cancelling a waiter does not
    cancel the shared resolution.

    Attributes:
        name: Name of the resource being resolved (for logging)
    """

    def __init__(self, resolver: Callable[[], Awaitable[str]], name: str = ""):
        self.name = name
        self._resolver = resolver
        self._task: Optional[asyncio.Future] = None
        self._endpoint: Optional[str] = None

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self.start()

    @property
    def ready(self) -> bool:
        """True once the endpoint has been resolved; never reset."""
        return self._endpoint is not None

    @property
    def failed(self) -> bool:
        """True if resolution ran and failed."""
        return (
            self._task is not None
            and self._task.done()
            and not self._task.cancelled()
            and self._task.exception() is not None
        )

    @property
    def endpoint(self) -> str:
        """
        The resolved endpoint.

        Raises:
            QueueNotReadyError: If the endpoint has not been resolved yet
        """
        if self._endpoint is None:
            raise QueueNotReadyError(f"Endpoint for {self.name!r} is not resolved yet")
        return self._endpoint

    def start(self) -> None:
        """Schedule resolution on the running loop if not already started."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._resolve())
            self._task.add_done_callback(self._on_resolved)

    async def _resolve(self) -> str:
        try:
            endpoint = await self._resolver()
        except BackendUnavailable:
            raise
        except Exception as e:
            raise BackendUnavailable(
                f"Failed to resolve endpoint for {self.name!r}: {e}",
                cause=e
            ) from e

        if not endpoint or not isinstance(endpoint, str):
            raise BackendUnavailable(f"Backend returned no endpoint for {self.name!r}")

        self._endpoint = endpoint
        return endpoint

    def _on_resolved(self, task: asyncio.Future) -> None:
        if task.cancelled():
            logger.warning("Endpoint resolution cancelled", name=self.name)
            return

        # Retrieving the exception here keeps asyncio from reporting it as
        # unhandled when nobody is waiting
        error = task.exception()
        if error is not None:
            logger.error(
                "Endpoint resolution failed",
                name=self.name,
                error=str(error),
                error_type=type(error).__name__
            )
        else:
            logger.info("Endpoint resolved", name=self.name, endpoint=task.result())

    async def wait(self) -> str:
        """
        Wait for the endpoint and return it.

        Raises:
            BackendUnavailable: If resolution failed (or was cancelled)
        """
        if self._endpoint is not None:
            return self._endpoint

        self.start()
        try:
            return await asyncio.shield(self._task)
        except BackendUnavailable as e:
            raise BackendUnavailable(str(e), code=e.code, cause=e.cause or e) from e
        except asyncio.CancelledError:
            if self._task.cancelled():
                raise BackendUnavailable(f"Endpoint resolution for {self.name!r} was cancelled")
            raise

    async def when_ready(self, op: Callable[[str], Awaitable[T]]) -> T:
        """Run op(endpoint) once the endpoint is resolved."""
        endpoint = await self.wait()
        return await op(endpoint)
