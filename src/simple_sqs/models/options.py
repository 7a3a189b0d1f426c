"""
Module: options.py
Description: Per-operation option models.

Each queue operation takes its options through one of these models so
defaults and ranges are declared once and validated at the boundary.

Key Components:
- AddOptions: delivery delay for add/add_all
- PeekOptions: long-poll wait and message limit for peek/poll
- PeekOneOptions: long-poll wait for peek_one/poll_one/stream
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from ..config.settings import MAX_WAIT_SECONDS

# SQS accepts delays of up to 15 minutes
MAX_DELAY_SECONDS = 900

# Largest peek/poll request; fans out to at most 100 receive calls
MAX_PEEK_LIMIT = 1000


class AddOptions(BaseModel):
    """Options for add and add_all."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    delay_seconds: Optional[int] = Field(
        default=None,
        ge=0,
        le=MAX_DELAY_SECONDS,
        description="Seconds to delay delivery of the message(s)"
    )


class PeekOneOptions(BaseModel):
    """Options for single-message retrieval."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    timeout_seconds: int = Field(
        default=0,
        ge=0,
        le=MAX_WAIT_SECONDS,
        description="Seconds the backend may wait for a message to arrive"
    )


class PeekOptions(PeekOneOptions):
    """Options for peek and poll."""

    limit: int = Field(
        default=1,
        ge=1,
        le=MAX_PEEK_LIMIT,
        description="Maximum number of messages to return (1-1000); above 10 is batched"
    )
