"""
Module: errors.py
Description: Exception hierarchy for the queue client.

Key Components:
- QueueError: Base class carrying an error code and creation time
- InvalidArgument: Caller-supplied value failed validation
- QueueNotReadyError: Queue URL read before it was resolved
- BackendError / BackendUnavailable / InvalidReceipt: Backend failures
- PartialBatchFailure: Some elements of a batched call failed

Dependencies: dataclasses, datetime, typing
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple


class QueueError(Exception):
    """
    Base class for all queue client errors.

    Attributes:
        code: Short machine-readable error code
        cause: Underlying exception, if any
        time: UTC timestamp of when the error was raised
    """

    code = "QueueError"

    def __init__(self, message: str, code: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.cause = cause
        self.time = datetime.now(timezone.utc)


class InvalidArgument(QueueError, ValueError):
    """Caller-supplied value failed a type, shape or range check."""

    code = "InvalidArgument"


class QueueNotReadyError(QueueError):
    """The queue URL was read before it was resolved."""

    code = "QueueNotReady"


class BackendError(QueueError):
    """The backend rejected a request."""

    code = "BackendError"


class BackendUnavailable(BackendError):
    """Queue URL resolution failed or the backend could not be reached."""

    code = "BackendUnavailable"


class InvalidReceipt(BackendError):
    """The backend rejected a receipt token (expired or unknown)."""

    code = "InvalidReceipt"


@dataclass(frozen=True)
class BatchItemFailure:
    """Failure of one element in a batched call, by input position."""

    index: int
    cause: BaseException


class PartialBatchFailure(QueueError):
    """
    One or more elements of a batched add/remove/poll failed.

    Raised only after every element has been attempted, so callers can
    reconcile: ``succeeded`` holds ``(index, result)`` pairs for the
    elements that went through and ``failures`` the ones that did not.
    """

    code = "PartialBatchFailure"

    def __init__(
        self,
        operation: str,
        failures: List[BatchItemFailure],
        succeeded: Optional[List[Tuple[int, Any]]] = None
    ):
        self.operation = operation
        self.failures = sorted(failures, key=lambda f: f.index)
        self.succeeded = list(succeeded or [])
        positions = ", ".join(str(f.index) for f in self.failures)
        super().__init__(
            f"{operation} failed for {len(self.failures)} element(s) at position(s) {positions}",
            cause=self.failures[0].cause if self.failures else None
        )

    @property
    def failed_indexes(self) -> List[int]:
        """Input positions of the failed elements, ascending."""
        return [f.index for f in self.failures]
