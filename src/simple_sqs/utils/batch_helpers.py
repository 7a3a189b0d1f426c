"""
Module: batch_helpers.py
Description: Utility functions for batch operations.

Splits collections and counts into service-sized batches, runs a
single-batch coroutine per batch, and reassembles results in input
order. SQS accepts at most 10 entries per send or receive call.

Key Components:
- chunk_list(): Split sequences into smaller chunks
- validate_batch_size(): Validate batch size constraints
- run_batched(): Fan out per-chunk calls and flatten the results

Dependencies: asyncio, typing
Author: simple-sqs Team
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar('T')
R = TypeVar('R')

MAX_BATCH_SIZE = 10


def chunk_list(items: Sequence[T], chunk_size: int = MAX_BATCH_SIZE) -> List[List[T]]:
    """
    Split a sequence into smaller chunks of specified size.

    Args:
        items: Sequence to split into chunks
        chunk_size: Maximum size of each chunk

    Returns:
        List of chunks, where each chunk is a list of items

    Raises:
        ValueError: If chunk_size is not positive

    Example:
        >>> chunk_list([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if not isinstance(items, (list, tuple)):
        raise ValueError("items must be a list or tuple")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    chunks = []
    for i in range(0, len(items), chunk_size):
        chunks.append(list(items[i:i + chunk_size]))

    return chunks


def validate_batch_size(items: Sequence[Any], max_size: int = MAX_BATCH_SIZE) -> None:
    """
    Validate that a batch doesn't exceed the maximum allowed size.

    Args:
        items: Items to validate
        max_size: Maximum allowed batch size

    Raises:
        ValueError: If batch size exceeds maximum
    """
    if len(items) > max_size:
        raise ValueError(f"batch size cannot exceed {max_size} items")


async def run_batched(
    items: Sequence[T],
    batch_fn: Callable[[List[T]], Awaitable[List[R]]],
    chunk_size: int = MAX_BATCH_SIZE
) -> List[R]:
    """
    Run batch_fn once per chunk of items and flatten the results.

    Empty input returns [] without calling batch_fn. Input that fits in
    one chunk is passed straight through. Larger input is chunked and the
    chunks run concurrently; results are concatenated in chunk order, so
    the output follows the input order. The first chunk error propagates
    once every chunk has finished.

    Args:
        items: Items to process
        batch_fn: Coroutine function handling one chunk
        chunk_size: Maximum chunk size

    Returns:
        Flattened list of per-chunk results
    """
    if len(items) == 0:
        return []

    if len(items) <= chunk_size:
        return list(await batch_fn(list(items)))

    chunk_results = await asyncio.gather(
        *(batch_fn(chunk) for chunk in chunk_list(items, chunk_size)),
        return_exceptions=True
    )

    merged: List[R] = []
    for result in chunk_results:
        if isinstance(result, BaseException):
            raise result
        merged.extend(result)

    return merged
