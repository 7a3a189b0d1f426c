"""
Module: queue.py
Description: High-level client for one remote message queue.

Wraps the raw backend calls behind add/peek/remove/poll/clear/size,
holding every call behind the readiness gate until the queue URL is
known and splitting oversized add/peek requests into batches of 10.

Key Components:
- Queue: bound connection to one remote queue
- Retrieve-then-acknowledge: poll() = peek() + remove() per message
- Partial failure reporting for add_all/remove_all/poll

Dependencies: asyncio, copy, uuid, pydantic, typing
Author: simple-sqs Team
"""

import asyncio
import copy
import uuid
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..backend.base import QueueBackend
from ..backend.sqs import SQSBackend
from ..config.settings import QueueSettings
from ..errors import (
    BackendError,
    BatchItemFailure,
    InvalidArgument,
    PartialBatchFailure,
)
from ..models.message import BatchEntry, Message
from ..models.options import AddOptions, PeekOneOptions, PeekOptions
from ..utils.batch_helpers import run_batched
from ..utils.logger import configure_logging, get_logger
from ..utils.serialization import decode_body, encode_payload
from .gate import ReadinessGate
from .stream import QueueStream

logger = get_logger(__name__)

OptionsT = TypeVar('OptionsT', bound=BaseModel)

Outcome = Tuple[int, Union[Message, BaseException]]


def _invalid_argument(e: ValidationError, kind: str = "option") -> InvalidArgument:
    """Convert the first pydantic validation error into InvalidArgument."""
    first = e.errors()[0]
    field = ".".join(str(part) for part in first.get('loc', ())) or "value"
    return InvalidArgument(f"Invalid {field} {kind}; {first.get('msg')}", cause=e)


def _build_options(model_cls: Type[OptionsT], options: Optional[BaseModel], **overrides: Any) -> OptionsT:
    """Merge an optional options model with keyword overrides and validate once."""
    values = {k: v for k, v in overrides.items() if v is not None}

    if options is None:
        base = {}
    elif isinstance(options, model_cls) or issubclass(model_cls, type(options)):
        base = options.model_dump(exclude_unset=True)
    else:
        raise InvalidArgument(
            f"Invalid options argument; expected {model_cls.__name__}, "
            f"received {type(options).__name__}"
        )

    base = {k: v for k, v in base.items() if k in model_cls.model_fields}
    try:
        return model_cls(**{**base, **values})
    except ValidationError as e:
        raise _invalid_argument(e) from e


def _extract_receipt_token(value: Any, name: str = "message argument") -> str:
    """Return the receipt token of a message, mapping or raw token string."""
    if isinstance(value, str):
        token = value
    elif isinstance(value, Mapping):
        token = value.get('receipt_token')
    else:
        token = getattr(value, 'receipt_token', None)

    if not isinstance(token, str) or not token:
        raise InvalidArgument(
            f"Invalid {name}; expected receipt token string or message with a "
            f"receipt_token, received {type(value).__name__}"
        )

    return token


def _require_sequence(value: Any, name: str) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)):
        raise InvalidArgument(
            f"Invalid {name} argument; expected list or tuple, received {type(value).__name__}"
        )
    return value


class Queue:
    """
    Client bound to one remote queue.

    Every operation waits for the queue URL to be resolved (once, at
    construction) before reaching the backend. Operations submitted
    before resolution completes run in submission order; if resolution
    fails they all raise BackendUnavailable.

    Example:
        >>> queue = Queue(queue_name="jobs", aws_region="eu-west-1")
        >>> await queue.add({"v": 1})
        >>> message = await queue.peek_one(timeout_seconds=5)
        >>> await queue.remove(message)
    """

    def __init__(
        self,
        settings: Optional[QueueSettings] = None,
        backend: Optional[QueueBackend] = None,
        **options: Any
    ):
        """
        Initialize the queue client and start resolving the queue URL.

        Args:
            settings: Queue settings; built from options when omitted
            backend: Backend to call; an SQSBackend built from settings when omitted
            **options: QueueSettings fields (queue_name, aws_region, ...)

        Raises:
            InvalidArgument: If the configuration is invalid
        """
        if settings is None:
            try:
                settings = QueueSettings(**options)
            except ValidationError as e:
                raise _invalid_argument(e) from e
        elif not isinstance(settings, QueueSettings):
            raise InvalidArgument(
                f"Invalid settings argument; expected QueueSettings, received {type(settings).__name__}"
            )
        elif options:
            raise InvalidArgument("Pass either settings or keyword options, not both")

        if backend is None:
            backend = SQSBackend.from_settings(settings)
        elif not isinstance(backend, QueueBackend):
            raise InvalidArgument(
                f"Invalid backend argument; expected QueueBackend, received {type(backend).__name__}"
            )

        if settings.manage_logging:
            configure_logging(settings.log_level)

        self.settings = settings
        self.backend = backend
        self._name = settings.queue_name
        self._gate = ReadinessGate(
            lambda: self.backend.resolve_endpoint(self._name),
            name=self._name
        )

        logger.info(
            "Queue client initialized",
            queue_name=self._name,
            backend=type(backend).__name__
        )

    def __repr__(self) -> str:
        return f"<Queue name={self._name!r} ready={self.ready}>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def ready(self) -> bool:
        """Whether the queue URL has been resolved."""
        return self._gate.ready

    @property
    def endpoint(self) -> str:
        """
        The resolved queue URL.

        Raises:
            QueueNotReadyError: If read before resolution completed
        """
        return self._gate.endpoint

    async def get_url(self) -> str:
        """Wait for and return the queue URL."""
        return await self._gate.wait()

    async def size(self) -> int:
        """
        Return the approximate number of messages in the queue.

        Counts both visible and in-flight messages. The backend reports
        estimates that may lag behind recent sends and deletes.
        """
        counts = await self._gate.when_ready(self.backend.get_approximate_counts)
        return counts.total

    async def is_empty(self) -> bool:
        """Whether size() is 0."""
        return await self.size() == 0

    async def add(
        self,
        payload: Any,
        options: Optional[AddOptions] = None,
        *,
        delay_seconds: Optional[int] = None
    ) -> Message:
        """
        Append a message with the given payload to the end of the queue.

        Args:
            payload: Number, string, boolean, dict or None
            options: Optional AddOptions
            delay_seconds: Seconds (0-900) to delay delivery

        Returns:
            The created message (without receipt token); its body is a
            copy of the payload as passed in

        Raises:
            InvalidArgument: If payload or options are invalid
            BackendError: If the backend rejects the send
        """
        opts = _build_options(AddOptions, options, delay_seconds=delay_seconds)
        body = encode_payload(payload)
        snapshot = copy.deepcopy(payload)

        async def send(endpoint: str) -> Message:
            result = await self.backend.send_message(endpoint, body, opts.delay_seconds)
            return Message(id=result.id, body=snapshot, digest=result.digest)

        message = await self._gate.when_ready(send)
        logger.debug("Message added", queue_name=self._name, message_id=message.id)
        return message

    async def add_all(
        self,
        items: Sequence[Any],
        options: Optional[AddOptions] = None,
        *,
        delay_seconds: Optional[int] = None
    ) -> List[Message]:
        """
        Append each element of items as a message, in batches of 10.

        Batches are sent concurrently. The returned messages follow the
        order of items; the order in which SQS stores messages from
        different batches is not guaranteed.

        Returns:
            One message per element, without receipt tokens; bodies are
            copies of the elements as passed in

        Raises:
            InvalidArgument: If items is not a list/tuple or an element is
                not a valid payload (nothing is sent)
            PartialBatchFailure: If any element failed to send; raised once
                every batch has completed, with the sent messages in
                ``succeeded``
        """
        _require_sequence(items, "items")
        opts = _build_options(AddOptions, options, delay_seconds=delay_seconds)
        bodies = [
            encode_payload(item, name=f"element at position {i} of items argument")
            for i, item in enumerate(items)
        ]

        if not bodies:
            return []

        snapshots = copy.deepcopy(list(items))

        async def send_all(endpoint: str) -> List[Outcome]:
            return await run_batched(
                list(enumerate(bodies)),
                lambda chunk: self._send_batch(endpoint, chunk, snapshots, opts)
            )

        outcomes = await self._gate.when_ready(send_all)

        failures = [BatchItemFailure(i, r) for i, r in outcomes if isinstance(r, BaseException)]
        if failures:
            succeeded = [(i, r) for i, r in outcomes if isinstance(r, Message)]
            logger.error(
                "Batch add partially failed",
                queue_name=self._name,
                count=len(bodies),
                failed=len(failures)
            )
            raise PartialBatchFailure("add_all", failures, succeeded)

        logger.debug("Messages added", queue_name=self._name, count=len(outcomes))
        return [r for _, r in outcomes]

    async def _send_batch(
        self,
        endpoint: str,
        chunk: List[Tuple[int, str]],
        items: Sequence[Any],
        opts: AddOptions
    ) -> List[Outcome]:
        """Send one batch; failures are returned per element, not raised."""
        entries = [
            BatchEntry(client_token=uuid.uuid4().hex, body=body, delay_seconds=opts.delay_seconds)
            for _, body in chunk
        ]

        try:
            results = await self.backend.send_message_batch(endpoint, entries)
        except Exception as e:
            return [(index, e) for index, _ in chunk]

        by_token = {result.client_token: result for result in results}
        outcomes: List[Outcome] = []
        for (index, _), entry in zip(chunk, entries):
            result = by_token.get(entry.client_token)
            if result is not None and result.ok:
                outcomes.append((index, Message(id=result.id, body=items[index], digest=result.digest)))
            else:
                code = result.error_code if result is not None else "MissingResult"
                detail = result.error_message if result is not None else "no result returned"
                outcomes.append((index, BackendError(
                    f"Failed to add element at position {index}: {detail}",
                    code=code
                )))

        return outcomes

    async def _receive(self, endpoint: str, count: int, timeout_seconds: int) -> List[Message]:
        received = await self.backend.receive_messages(endpoint, count, timeout_seconds)
        return [
            Message(
                id=item.id,
                body=decode_body(item.body, item.id),
                digest=item.digest,
                receipt_token=item.receipt_token
            )
            for item in received
        ]

    async def peek(
        self,
        options: Optional[PeekOptions] = None,
        *,
        timeout_seconds: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Message]:
        """
        Retrieve, but do not remove, up to limit messages from the queue.

        Retrieved messages stay hidden from other consumers for the
        queue's visibility timeout, then reappear unless removed.

        Args:
            options: Optional PeekOptions
            timeout_seconds: Seconds (0-20) the backend may wait for a message
            limit: Maximum number of messages; above 10 is split into
                concurrent calls of at most 10

        Returns:
            Messages with receipt tokens; may be fewer than limit
        """
        opts = _build_options(PeekOptions, options, timeout_seconds=timeout_seconds, limit=limit)

        async def receive(endpoint: str) -> List[Message]:
            return await run_batched(
                list(range(opts.limit)),
                lambda chunk: self._receive(endpoint, len(chunk), opts.timeout_seconds)
            )

        messages = await self._gate.when_ready(receive)
        logger.debug("Messages peeked", queue_name=self._name, count=len(messages), limit=opts.limit)
        return messages

    async def peek_one(
        self,
        options: Optional[PeekOneOptions] = None,
        *,
        timeout_seconds: Optional[int] = None
    ) -> Optional[Message]:
        """Retrieve, but do not remove, one message; None if none arrived."""
        opts = _build_options(PeekOneOptions, options, timeout_seconds=timeout_seconds)
        messages = await self.peek(PeekOptions(timeout_seconds=opts.timeout_seconds, limit=1))
        return messages[0] if messages else None

    async def remove(self, message: Union[Message, Mapping, str, Any]) -> None:
        """
        Remove a retrieved message from the queue.

        Args:
            message: A retrieved message, a mapping or object with a
                receipt_token, or the receipt token itself

        Raises:
            InvalidArgument: If no receipt token can be extracted
            InvalidReceipt: If the backend rejects the token; a second
                removal with the same token may fail this way
        """
        receipt_token = _extract_receipt_token(message)

        async def delete(endpoint: str) -> None:
            await self.backend.delete_message(endpoint, receipt_token)

        await self._gate.when_ready(delete)
        logger.debug("Message removed", queue_name=self._name)

    async def remove_all(self, messages: Sequence[Any]) -> None:
        """
        Remove each of the given messages (or receipt tokens).

        Deletes run concurrently and every one is attempted even when
        others fail.

        Raises:
            InvalidArgument: If messages is not a list/tuple or an element
                has no receipt token (nothing is deleted)
            PartialBatchFailure: If any delete failed, with positions
        """
        _require_sequence(messages, "messages")
        receipt_tokens = [
            _extract_receipt_token(m, name=f"element at position {i} of messages argument")
            for i, m in enumerate(messages)
        ]

        if not receipt_tokens:
            return

        async def delete_all(endpoint: str) -> List[Any]:
            return await asyncio.gather(
                *(self.backend.delete_message(endpoint, token) for token in receipt_tokens),
                return_exceptions=True
            )

        results = await self._gate.when_ready(delete_all)

        failures = [BatchItemFailure(i, r) for i, r in enumerate(results) if isinstance(r, BaseException)]
        if failures:
            succeeded = [
                (i, receipt_tokens[i]) for i, r in enumerate(results)
                if not isinstance(r, BaseException)
            ]
            logger.error(
                "Batch remove partially failed",
                queue_name=self._name,
                count=len(receipt_tokens),
                failed=len(failures)
            )
            raise PartialBatchFailure("remove_all", failures, succeeded)

        logger.debug("Messages removed", queue_name=self._name, count=len(receipt_tokens))

    async def poll(
        self,
        options: Optional[PeekOptions] = None,
        *,
        timeout_seconds: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Message]:
        """
        Retrieve and remove up to limit messages.

        Each message is returned only after its removal completed.

        Raises:
            PartialBatchFailure: If some removals failed; ``succeeded`` holds
                the removed messages. Messages whose removal failed stay
                in flight and will be delivered again after the
                visibility timeout.
        """
        messages = await self.peek(options, timeout_seconds=timeout_seconds, limit=limit)
        if not messages:
            return []

        results = await asyncio.gather(
            *(self.remove(message) for message in messages),
            return_exceptions=True
        )

        failures = [BatchItemFailure(i, r) for i, r in enumerate(results) if isinstance(r, BaseException)]
        if failures:
            logger.warning(
                "Retrieved messages could not be removed and will be redelivered",
                queue_name=self._name,
                message_ids=[messages[f.index].id for f in failures]
            )
            succeeded = [
                (i, messages[i]) for i, r in enumerate(results)
                if not isinstance(r, BaseException)
            ]
            raise PartialBatchFailure("poll", failures, succeeded)

        return messages

    async def poll_one(
        self,
        options: Optional[PeekOneOptions] = None,
        *,
        timeout_seconds: Optional[int] = None
    ) -> Optional[Message]:
        """
        Retrieve and remove one message; None if none arrived.

        A removal failure is re-raised; the message then stays in flight
        and will be delivered again after the visibility timeout.
        """
        message = await self.peek_one(options, timeout_seconds=timeout_seconds)
        if message is None:
            return None

        try:
            await self.remove(message)
        except Exception as e:
            logger.warning(
                "Retrieved message could not be removed and will be redelivered",
                queue_name=self._name,
                message_id=message.id,
                error=str(e)
            )
            raise

        return message

    async def clear(self) -> None:
        """Remove all messages from the queue. Cannot be undone."""
        await self._gate.when_ready(self.backend.purge_queue)
        logger.info("Queue cleared", queue_name=self._name)

    def stream(
        self,
        options: Optional[PeekOneOptions] = None,
        *,
        timeout_seconds: Optional[int] = None
    ) -> QueueStream:
        """
        Return an async iterator consuming message bodies one poll at a time.

        The stream ends when a poll returns nothing, which means the queue
        was drained for now, not that it is gone.

        Example:
            >>> async for body in queue.stream(timeout_seconds=20):
            ...     handle(body)
        """
        opts = _build_options(PeekOneOptions, options, timeout_seconds=timeout_seconds)
        return QueueStream(self, opts)

    async def drain(
        self,
        options: Optional[PeekOneOptions] = None,
        *,
        timeout_seconds: Optional[int] = None,
        max_messages: Optional[int] = None
    ) -> List[Any]:
        """
        Consume messages until the queue yields nothing and return their bodies.

        Args:
            options: Optional PeekOneOptions
            timeout_seconds: Seconds (0-20) each poll may wait
            max_messages: Stop after this many messages

        Raises:
            InvalidArgument: If max_messages is not a positive integer
        """
        if max_messages is not None and (
            isinstance(max_messages, bool) or not isinstance(max_messages, int) or max_messages < 1
        ):
            raise InvalidArgument(
                f"Invalid max_messages argument; expected positive integer, received {max_messages!r}"
            )

        bodies: List[Any] = []
        async with self.stream(options, timeout_seconds=timeout_seconds) as stream:
            async for body in stream:
                bodies.append(body)
                if max_messages is not None and len(bodies) >= max_messages:
                    break

        logger.info("Queue drained", queue_name=self._name, count=len(bodies))
        return bodies
